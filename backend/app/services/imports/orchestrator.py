"""
テスト結果インポートのオーケストレーター

検証 → 形式判定 → パース → 実行の作成/検証 → テンプレート取得 → ケース数の集計 →
スイート処理 → 後処理 の順に1回のインポートを逐次実行し、ProgressReporter に進捗を送る。

入力検証・パースの失敗は致命的エラーとして終端の error イベントになる。
ケース単位・スイート単位の失敗はログに残し、ItemResult として ImportSummary に集めて処理を続ける。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func
from sqlmodel import Session, select

from app.config import config
from app.exceptions import (
    FormatDetectionException,
    ImportValidationException,
    ResultforgeException,
    ResultParseException,
    UnsupportedFormatException,
)
from app.logging_config import logger
from app.models import (
    Project,
    ProjectWorkflowLink,
    Template,
    TestResult,
    TestResultType,
    TestRun,
    TestRunTagLink,
    TestSuite,
    Workflow,
    WorkflowScope,
    WorkflowType,
)
from app.models import base
from app.models.base import utcnow
from .audit import AuditSink, get_audit_sink
from .cases import CaseMetadata, CaseUpsertEngine
from .detector import detect
from .folders import FolderPathBuilder, default_folder_name, split_suite_name
from .formats import (
    AUTO_FORMAT,
    FORMATS,
    TestResultFormat,
    extract_class_name,
    get_format,
    is_valid_format,
)
from .parsed import ParsedCase, ParsedResult, ParsedSuite, UploadedFile
from .parsers import ResultParser
from .progress import ProgressReporter
from .recorder import ResultRecorder
from .status_resolver import StatusResolver

MISSING_FIELDS = "Missing required fields"
NO_TEMPLATE = (
    "No template found. Please select a template or configure a default template "
    "before importing test results."
)
DEFAULT_SUITE_NAME = "Test Suite"
AUDIT_ENTITY = "TestResult"

# スイート・ケースの進捗を割り当てる範囲
CASE_PROGRESS_START = 25
CASE_PROGRESS_SPAN = 60


class ImportState(str, Enum):
    VALIDATING = "validating"
    DETECTING = "detecting"
    CREATING_OR_VALIDATING_RUN = "creating_or_validating_run"
    FETCHING_TEMPLATE = "fetching_template"
    COUNTING_CASES = "counting_cases"
    PROCESSING_SUITES = "processing_suites"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ImportRequest:
    files: List[UploadedFile]
    project_id: Optional[int] = None
    name: Optional[str] = None
    format: str = AUTO_FORMAT
    test_run_id: Optional[int] = None
    config_id: Optional[int] = None
    milestone_id: Optional[int] = None
    state_id: Optional[int] = None
    parent_folder_id: Optional[int] = None
    template_id: Optional[int] = None
    tag_ids: List[int] = field(default_factory=list)


@dataclass
class ItemResult:
    """ケースまたはスイート1件の処理結果"""
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class ImportSummary:
    state: ImportState = ImportState.VALIDATING
    test_run_id: Optional[int] = None
    format: Optional[str] = None
    total_cases: int = 0
    processed: int = 0
    cases: List[ItemResult] = field(default_factory=list)
    suites: List[ItemResult] = field(default_factory=list)
    skipped_suites: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def imported(self) -> int:
        return sum(1 for item in self.cases if item.ok)

    @property
    def failed_cases(self) -> int:
        return sum(1 for item in self.cases if not item.ok)

    @property
    def failed_suites(self) -> List[str]:
        return [item.name for item in self.suites if not item.ok]


@dataclass
class _ImportContext:
    """検証済みの値。スイート処理中に参照する"""
    project_id: int
    test_run_id: int
    format: TestResultFormat
    case_state_id: int
    template_id: int
    repository_id: int
    parent_folder_id: Optional[int]
    total_cases: int
    file_count: int
    order: int = 0


class ImportOrchestrator:
    """1回のインポートを実行する"""

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        parser: Optional[ResultParser] = None,
        audit_sink: Optional[AuditSink] = None,
        progress_interval: Optional[int] = None,
    ):
        self.session_factory = session_factory or (lambda: Session(base.engine))
        self.parser = parser or ResultParser()
        self.audit_sink = audit_sink or get_audit_sink()
        if progress_interval is None:
            progress_interval = config.get("import", "progress_case_interval")
        # 0以下の設定は毎ケース送信として扱う
        self.progress_interval = max(1, int(progress_interval))

    async def run(self, request: ImportRequest, reporter: ProgressReporter) -> ImportSummary:
        """
        インポートを実行し、終端イベント（complete または error）を1度だけ送る

        Args:
            request: インポート要求
            reporter: 進捗の送信先

        Returns:
            インポート結果の集計
        """
        summary = ImportSummary()
        try:
            with self.session_factory() as session:
                await self._run(session, request, reporter, summary)
        except ResultforgeException as e:
            logger.warning(f"Import failed in state {summary.state.value}: {e}")
            summary.state = ImportState.FAILED
            summary.error = e.message
            await reporter.error(e.message)
        except Exception as e:
            logger.error(f"Unexpected error importing test results: {e}", exc_info=True)
            summary.state = ImportState.FAILED
            summary.error = str(e) or "Import failed"
            await reporter.error(summary.error)
        return summary

    async def _run(self, session: Session, request: ImportRequest, reporter: ProgressReporter, summary: ImportSummary) -> None:
        summary.state = ImportState.VALIDATING
        await reporter.progress(5, "Validating import...")
        case_state_id = self._validate(session, request)
        fmt = await self._resolve_format(request, reporter, summary)
        summary.format = fmt.value
        info = FORMATS[fmt]

        await reporter.progress(10, f"Parsing {info.label} files...")
        parsed = await run_in_threadpool(self._parse, request.files, fmt)
        if parsed.errors:
            summary.warnings.extend(parsed.errors)
            for warning in parsed.errors:
                logger.warning(f"Parse warning: {warning}")
            await reporter.progress(12, f"Parsed with {len(parsed.errors)} warning(s)")

        summary.state = ImportState.CREATING_OR_VALIDATING_RUN
        await reporter.progress(15, "Creating test run...")
        if request.test_run_id:
            self._validate_existing_run(session, request, fmt)

        summary.state = ImportState.FETCHING_TEMPLATE
        await reporter.progress(20, "Fetching template...")
        template = self._resolve_template(session, request.template_id)

        if request.test_run_id:
            test_run_id = request.test_run_id
        else:
            test_run_id = self._create_run(session, request, fmt, case_state_id)
        summary.test_run_id = test_run_id

        summary.state = ImportState.COUNTING_CASES
        total_cases = parsed.count_cases()
        summary.total_cases = total_cases
        await reporter.progress(25, f"Found {total_cases} test case(s) in {len(request.files)} file(s)")

        repository = FolderPathBuilder(session).get_or_create_repository(request.project_id)
        context = _ImportContext(
            project_id=request.project_id,
            test_run_id=test_run_id,
            format=fmt,
            case_state_id=case_state_id,
            template_id=template.id,
            repository_id=repository.id,
            parent_folder_id=request.parent_folder_id,
            total_cases=total_cases,
            file_count=len(request.files),
        )

        summary.state = ImportState.PROCESSING_SUITES
        resolver = StatusResolver(session)
        for index, suite in enumerate(parsed.suites):
            await self._process_suite(session, resolver, context, index, len(parsed.suites), suite, reporter, summary)

        summary.state = ImportState.FINALIZING
        await reporter.progress(90, "Finalizing import...")
        await run_in_threadpool(self._audit, context, summary)

        summary.state = ImportState.COMPLETED
        logger.info(
            f"Imported {summary.imported}/{total_cases} test case(s) into test run {test_run_id} "
            f"({summary.failed_cases} failed, {len(summary.failed_suites)} failed suite(s))"
        )
        await reporter.progress(100, "Import completed")
        await reporter.complete(test_run_id)

    async def _resolve_format(self, request: ImportRequest, reporter: ProgressReporter, summary: ImportSummary) -> TestResultFormat:
        requested = request.format or AUTO_FORMAT
        if requested == AUTO_FORMAT:
            summary.state = ImportState.DETECTING
            await reporter.progress(6, "Detecting file format...")
            detected = detect(request.files)
            if detected is None:
                raise FormatDetectionException(details={"files": [f.name for f in request.files]})
            await reporter.progress(8, f"Detected format: {FORMATS[detected].label}")
            summary.state = ImportState.VALIDATING
            return detected

        if not is_valid_format(requested):
            raise UnsupportedFormatException(f"Unsupported format: {requested}")
        return get_format(requested)

    def _validate(self, session: Session, request: ImportRequest) -> int:
        """必須項目を確認し、ケースに設定する完了ワークフローのIDを返す"""
        if not request.files or not request.name or not request.project_id:
            raise ImportValidationException(MISSING_FIELDS)

        project = session.get(Project, request.project_id)
        if project is None or project.is_deleted:
            raise ImportValidationException(MISSING_FIELDS, details={"project_id": request.project_id})

        workflow = session.exec(
            select(Workflow)
            .join(ProjectWorkflowLink, ProjectWorkflowLink.workflow_id == Workflow.id)
            .where(
                ProjectWorkflowLink.project_id == request.project_id,
                Workflow.is_enabled == True,  # noqa: E712
                Workflow.is_deleted == False,  # noqa: E712
                Workflow.workflow_type == WorkflowType.DONE,
                Workflow.scope == WorkflowScope.CASES,
            )
            .order_by(Workflow.order)
        ).first()
        if workflow is None:
            raise ImportValidationException(MISSING_FIELDS, details={"workflow": "DONE"})

        max_files = config.get("import", "max_files")
        if len(request.files) > max_files:
            raise ImportValidationException(f"Too many files: {len(request.files)} (max {max_files})")
        max_size = config.get("import", "max_file_size")
        for uploaded in request.files:
            if len(uploaded.content.encode("utf-8")) > max_size:
                raise ImportValidationException(f"File too large: {uploaded.name}")

        return workflow.id

    def _parse(self, files: List[UploadedFile], fmt: TestResultFormat) -> ParsedResult:
        try:
            return self.parser.parse(files, fmt)
        except ResultforgeException:
            raise
        except Exception as e:
            raise ResultParseException(f"Failed to parse {fmt.value} files: {e}") from e

    def _validate_existing_run(self, session: Session, request: ImportRequest, fmt: TestResultFormat) -> None:
        run_type = FORMATS[fmt].run_type
        existing = session.get(TestRun, request.test_run_id)
        if existing is None or existing.is_deleted:
            raise ImportValidationException("Test run not found", details={"test_run_id": request.test_run_id})
        if existing.project_id != request.project_id:
            raise ImportValidationException(
                "Test run belongs to a different project",
                details={"test_run_id": existing.id, "project_id": request.project_id},
            )
        if existing.test_run_type != run_type:
            raise ImportValidationException(f"Test run is not of type {run_type.value}")

    def _resolve_template(self, session: Session, template_id: Optional[int]) -> Template:
        template = None
        if template_id:
            template = session.get(Template, template_id)
            if template is not None and (template.is_deleted or not template.is_enabled):
                template = None
        if template is None:
            template = session.exec(
                select(Template)
                .where(
                    Template.is_default == True,  # noqa: E712
                    Template.is_enabled == True,  # noqa: E712
                    Template.is_deleted == False,  # noqa: E712
                )
                .order_by(Template.id)
            ).first()
        if template is None:
            raise ImportValidationException(NO_TEMPLATE)
        return template

    def _create_run(self, session: Session, request: ImportRequest, fmt: TestResultFormat, case_state_id: int) -> int:
        run = TestRun(
            project_id=request.project_id,
            name=request.name,
            test_run_type=FORMATS[fmt].run_type,
            state_id=request.state_id or case_state_id,
            config_id=request.config_id,
            milestone_id=request.milestone_id,
        )
        session.add(run)
        session.flush()
        for tag_id in dict.fromkeys(request.tag_ids):
            session.add(TestRunTagLink(test_run_id=run.id, tag_id=tag_id))
        session.commit()
        logger.info(f"Created test run {run.id} ({fmt.value}) for project {request.project_id}")
        return run.id

    def _suite_folder(self, builder: FolderPathBuilder, context: _ImportContext, suite: ParsedSuite) -> int:
        segments = split_suite_name(suite.name)
        if not segments:
            segments = [default_folder_name(context.format.value)]
        return builder.ensure_folder_path(
            context.project_id, context.repository_id, context.parent_folder_id, segments
        )

    def _case_progress(self, context: _ImportContext, processed: int) -> float:
        if context.total_cases <= 0:
            return CASE_PROGRESS_START
        return CASE_PROGRESS_START + (processed / context.total_cases) * CASE_PROGRESS_SPAN

    def _create_suite(self, session: Session, context: _ImportContext, suite: ParsedSuite, suite_name: str) -> Tuple[int, int]:
        """スイートとフォルダを作成してコミットし、(スイートID, フォルダID) を返す"""
        db_suite = TestSuite(
            test_run_id=context.test_run_id,
            name=suite_name,
            time=suite.duration,
            tests=suite.total or len(suite.cases),
            failures=suite.failed,
            errors=suite.errors,
            skipped=suite.skipped,
        )
        session.add(db_suite)
        folder_id = self._suite_folder(FolderPathBuilder(session), context, suite)
        session.commit()
        return db_suite.id, folder_id

    async def _process_suite(
        self,
        session: Session,
        resolver: StatusResolver,
        context: _ImportContext,
        index: int,
        suite_count: int,
        suite: ParsedSuite,
        reporter: ProgressReporter,
        summary: ImportSummary,
    ) -> None:
        suite_name = suite.name or DEFAULT_SUITE_NAME
        await reporter.progress(self._case_progress(context, summary.processed), f"Processing suite: {suite_name}")

        if not suite.cases:
            summary.skipped_suites.append(suite_name)
            return

        try:
            suite_id, folder_id = await run_in_threadpool(self._create_suite, session, context, suite, suite_name)

            case_engine = CaseUpsertEngine(session)
            recorder = ResultRecorder(session, resolver, context.project_id, context.test_run_id)
            for case in suite.cases:
                item = await run_in_threadpool(
                    self._process_case, session, case_engine, recorder, context, suite, suite_id, folder_id, case
                )
                summary.cases.append(item)
                summary.processed += 1
                if summary.processed % self.progress_interval == 0 or summary.processed == context.total_cases:
                    await reporter.progress(
                        self._case_progress(context, summary.processed),
                        f"Processing test case {summary.processed} of {context.total_cases}",
                    )
        except Exception as e:
            logger.error(f"Error processing test suite {suite_name}: {e}", exc_info=True)
            session.rollback()
            summary.suites.append(ItemResult(name=suite_name, ok=False, error=str(e)))
            return

        # ケースはコミット済みなので、集計の更新に失敗してもスイートは成功として扱う
        try:
            await run_in_threadpool(self._recompute_aggregates, session, suite_id)
        except Exception as e:
            logger.error(f"Error updating totals of test suite {suite_name}: {e}", exc_info=True)
            session.rollback()
            summary.warnings.append(f"{suite_name}: suite totals were not updated: {e}")
        summary.suites.append(ItemResult(name=suite_name, ok=True))

    def _process_case(
        self,
        session: Session,
        case_engine: CaseUpsertEngine,
        recorder: ResultRecorder,
        context: _ImportContext,
        suite: ParsedSuite,
        suite_id: int,
        folder_id: int,
        case: ParsedCase,
    ) -> ItemResult:
        context.order += 1
        try:
            if not case.name:
                raise ValueError("test case has no name")
            repository_case = case_engine.upsert_case(
                context.project_id,
                case.name,
                extract_class_name(case, suite),
                FORMATS[context.format].source,
                CaseMetadata(
                    repository_id=context.repository_id,
                    folder_id=folder_id,
                    template_id=context.template_id,
                    state_id=context.case_state_id,
                    order=context.order,
                    duration=case.duration,
                ),
            )
            case_id = repository_case.id
            case_engine.upsert_run_case(context.test_run_id, case_id, context.order)
            recorder.record_result(case_id, suite_id, case)
            return ItemResult(name=case.name, ok=True)
        except Exception as e:
            logger.error(f"Error processing test case {case.name}: {e}", exc_info=True)
            session.rollback()
            return ItemResult(name=case.name, ok=False, error=str(e))

    def _recompute_aggregates(self, session: Session, suite_id: int) -> None:
        """保存済みの結果からスイートの集計値を計算し直す"""
        rows = session.exec(
            select(TestResult.type, func.count(TestResult.id), func.coalesce(func.sum(TestResult.time), 0.0))
            .where(TestResult.test_suite_id == suite_id)
            .group_by(TestResult.type)
        ).all()
        counts = {result_type: count for result_type, count, _ in rows}
        db_suite = session.get(TestSuite, suite_id)
        db_suite.tests = sum(counts.values())
        db_suite.failures = counts.get(TestResultType.FAILURE, 0)
        db_suite.errors = counts.get(TestResultType.ERROR, 0)
        db_suite.skipped = counts.get(TestResultType.SKIPPED, 0)
        db_suite.time = float(sum(total for _, _, total in rows))
        db_suite.updated_at = utcnow()
        session.add(db_suite)
        session.commit()

    def _audit(self, context: _ImportContext, summary: ImportSummary) -> None:
        if summary.imported <= 0:
            return
        try:
            self.audit_sink.audit_bulk_create(
                AUDIT_ENTITY,
                summary.imported,
                context.project_id,
                {
                    "source": f"{context.format.value.upper()} Import",
                    "testRunId": context.test_run_id,
                    "fileCount": context.file_count,
                },
            )
        except Exception as e:
            logger.error(f"Failed to audit test results import: {e}", exc_info=True)
