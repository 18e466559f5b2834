import asyncio
from typing import List, Optional, Set

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from sqlmodel import Session, select

from app.logging_config import logger
from app.models import TestRun, TestRunCase, TestRunTagLink, TestSuite, get_session
from app.schemas.imports import DetectResult, FormatInfo, FormatList, RunSummary, SuiteSummary
from app.services.imports import (
    AUTO_FORMAT,
    FORMATS,
    ImportOrchestrator,
    ImportRequest,
    ProgressReporter,
    UploadedFile,
    detect,
    stream_events,
)
from app.services.imports.formats import accepted_extensions

router = APIRouter(prefix="/api/test-results", tags=["test-results"])

# 実行中のインポート。クライアントが切断してもタスクが破棄されないよう参照を保持する
_running_imports: Set[asyncio.Task] = set()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def get_orchestrator() -> ImportOrchestrator:
    return ImportOrchestrator()


def _optional_int(value: Optional[str]) -> Optional[int]:
    """フォームの数値を解釈する。空や数値でない値はNone"""
    if value is None or not str(value).strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None


async def _read_files(files: Optional[List[UploadFile]]) -> List[UploadedFile]:
    uploaded = []
    for file in files or []:
        content = await file.read()
        uploaded.append(UploadedFile(
            name=file.filename or "upload",
            content=content.decode("utf-8-sig", errors="replace"),
        ))
    return uploaded


@router.get("/formats", response_model=FormatList)
def list_formats():
    """対応しているテスト結果形式の一覧を返す"""
    return FormatList(formats=[
        FormatInfo(id=fmt.value, label=info.label, extensions=accepted_extensions(fmt))
        for fmt, info in FORMATS.items()
    ])


@router.post("/detect", response_model=DetectResult)
async def detect_files(files: List[UploadFile] = File(...)):
    """アップロードされたファイルの形式を判定する。判定できない場合はformatがnull"""
    detected = detect(await _read_files(files))
    return DetectResult(format=detected.value if detected else None)


@router.post("/import")
async def import_test_results(
    files: Optional[List[UploadFile]] = File(None),
    format: str = Form(AUTO_FORMAT),
    project_id: Optional[str] = Form(None, alias="projectId"),
    name: Optional[str] = Form(None),
    test_run_id: Optional[str] = Form(None, alias="testRunId"),
    config_id: Optional[str] = Form(None, alias="configId"),
    milestone_id: Optional[str] = Form(None, alias="milestoneId"),
    state_id: Optional[str] = Form(None, alias="stateId"),
    parent_folder_id: Optional[str] = Form(None, alias="parentFolderId"),
    template_id: Optional[str] = Form(None, alias="templateId"),
    tag_ids: Optional[List[str]] = Form(None, alias="tagIds"),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
):
    """
    テスト結果ファイルをインポートし、進捗を text/event-stream で返す

    各フレームは `data: <json>` で、進捗 {"progress", "status"}、
    完了 {"complete": true, "testRunId"}、エラー {"error"} のいずれか。
    """
    request = ImportRequest(
        files=await _read_files(files),
        format=format or AUTO_FORMAT,
        project_id=_optional_int(project_id),
        name=(name or "").strip() or None,
        test_run_id=_optional_int(test_run_id),
        config_id=_optional_int(config_id),
        milestone_id=_optional_int(milestone_id),
        state_id=_optional_int(state_id),
        parent_folder_id=_optional_int(parent_folder_id),
        template_id=_optional_int(template_id),
        tag_ids=[tag_id for tag_id in (_optional_int(value) for value in tag_ids or []) if tag_id],
    )
    logger.info(f"Starting import of {len(request.files)} file(s) for project {request.project_id} (format: {request.format})")

    channel: asyncio.Queue = asyncio.Queue()
    reporter = ProgressReporter(channel)
    task = asyncio.create_task(orchestrator.run(request, reporter))
    _running_imports.add(task)
    task.add_done_callback(_running_imports.discard)

    return StreamingResponse(stream_events(channel), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/runs/{test_run_id}", response_model=RunSummary)
def get_run_summary(test_run_id: int, session: Session = Depends(get_session)):
    """インポートされたテスト実行のスイートと実行ケースの集計を返す"""
    run = session.get(TestRun, test_run_id)
    if run is None or run.is_deleted:
        raise HTTPException(status_code=404, detail=f"Test run {test_run_id} not found")

    suites = session.exec(
        select(TestSuite).where(TestSuite.test_run_id == test_run_id).order_by(TestSuite.id)
    ).all()
    run_cases = session.exec(select(TestRunCase).where(TestRunCase.test_run_id == test_run_id)).all()
    tag_ids = session.exec(select(TestRunTagLink.tag_id).where(TestRunTagLink.test_run_id == test_run_id)).all()

    status_counts = {}
    for run_case in run_cases:
        key = str(run_case.status_id) if run_case.status_id is not None else "none"
        status_counts[key] = status_counts.get(key, 0) + 1

    return RunSummary(
        id=run.id,
        project_id=run.project_id,
        name=run.name,
        test_run_type=run.test_run_type.value,
        state_id=run.state_id,
        config_id=run.config_id,
        milestone_id=run.milestone_id,
        tag_ids=list(tag_ids),
        suites=[SuiteSummary.model_validate(suite) for suite in suites],
        case_count=len(run_cases),
        completed_count=sum(1 for run_case in run_cases if run_case.is_completed),
        status_counts=status_counts,
    )
