"""
テスト結果の記録
"""
from sqlalchemy import func
from sqlmodel import Session, select

from app.models import (
    TestResult,
    TestResultAttachment,
    TestResultStep,
    TestResultType,
    TestRunCase,
    TestSuite,
)
from app.models.base import utcnow
from .parsed import ParsedCase
from .status_resolver import StatusResolver

RESULT_TYPES = {
    "passed": TestResultType.PASSED,
    "failed": TestResultType.FAILURE,
    "error": TestResultType.ERROR,
    "skipped": TestResultType.SKIPPED,
}


def to_result_type(status: str) -> TestResultType:
    return RESULT_TYPES.get(status, TestResultType.PASSED)


class ResultRecorder:
    """1つのテスト実行に対する結果を記録する"""

    def __init__(self, session: Session, status_resolver: StatusResolver, project_id: int, test_run_id: int):
        self.session = session
        self.status_resolver = status_resolver
        self.project_id = project_id
        self.test_run_id = test_run_id

    def _next_attempt(self, case_id: int) -> int:
        count = self.session.exec(
            select(func.count(TestResult.id))
            .join(TestSuite, TestSuite.id == TestResult.test_suite_id)
            .where(
                TestSuite.test_run_id == self.test_run_id,
                TestResult.repository_case_id == case_id,
            )
        ).one()
        return (count or 0) + 1

    def record_result(self, case_id: int, suite_id: int, outcome: ParsedCase) -> TestResult:
        """
        ケースの結果・ステップ・添付を保存し、実行ケースのステータスを更新してコミットする

        Args:
            case_id: リポジトリケースID
            suite_id: インポートスイートID
            outcome: パース済みのケース

        Returns:
            作成した結果
        """
        status_id = self.status_resolver.resolve(outcome.status, self.project_id)
        executed_at = utcnow()

        result = TestResult(
            test_suite_id=suite_id,
            repository_case_id=case_id,
            type=to_result_type(outcome.status),
            message=outcome.failure,
            content=outcome.stack_trace,
            status_id=status_id,
            time=outcome.duration,
            attempt=self._next_attempt(case_id),
            executed_at=executed_at,
        )
        self.session.add(result)
        self.session.flush()

        for index, step in enumerate(outcome.steps):
            step_status_id = None
            # 成功ステップはステータスを引かない
            if step.status != "passed":
                matched = self.status_resolver.match_status(step.status, self.project_id)
                step_status_id = matched.id if matched else None
            self.session.add(TestResultStep(
                repository_case_id=case_id,
                test_result_id=result.id,
                name=step.name,
                content=step.failure,
                status_id=step_status_id,
                order=index,
            ))

        for attachment in outcome.attachments:
            self.session.add(TestResultAttachment(
                repository_case_id=case_id,
                test_result_id=result.id,
                name=attachment.name,
                value=attachment.path,
            ))

        run_case = self.session.exec(
            select(TestRunCase).where(
                TestRunCase.test_run_id == self.test_run_id,
                TestRunCase.repository_case_id == case_id,
            )
        ).first()
        if run_case:
            run_case.status_id = status_id
            run_case.is_completed = True
            run_case.completed_at = executed_at
            run_case.updated_at = executed_at
            self.session.add(run_case)

        self.session.commit()
        self.session.refresh(result)
        return result
