"""
リポジトリケースとテスト実行ケースのアトミックなアップサート
"""
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from app.models import RepositoryCase, RepositoryCaseSource, TestRunCase
from app.models.base import utcnow
from app.utils.upsert import upsert
from .formats import estimate_from_duration


@dataclass
class CaseMetadata:
    repository_id: int
    folder_id: int
    template_id: int
    state_id: int
    order: int = 0
    # 秒
    duration: float = 0.0


class CaseUpsertEngine:
    def __init__(self, session: Session):
        self.session = session

    def upsert_case(
        self,
        project_id: int,
        name: str,
        class_name: str,
        source: RepositoryCaseSource,
        metadata: CaseMetadata,
    ) -> RepositoryCase:
        """
        (project_id, name, class_name, source) をキーにケースを作成または更新する

        再インポート時は自動化フラグを立て直し、削除・アーカイブ状態を解除して
        フォルダ・テンプレート・並び順・見積もりを最新の値にする。
        """
        estimate = estimate_from_duration(metadata.duration)
        now = utcnow()
        refreshed = {
            "automated": True,
            "is_deleted": False,
            "is_archived": False,
            "state_id": metadata.state_id,
            "template_id": metadata.template_id,
            "folder_id": metadata.folder_id,
            "repository_id": metadata.repository_id,
            "order": metadata.order,
            "estimate": estimate,
            "forecast_manual": estimate,
            "updated_at": now,
        }
        return upsert(
            self.session,
            RepositoryCase,
            values={
                "project_id": project_id,
                "name": name,
                "class_name": class_name,
                "source": source,
                "created_at": now,
                **refreshed,
            },
            conflict_columns=["project_id", "name", "class_name", "source"],
            update_values=refreshed,
        )

    def upsert_run_case(self, test_run_id: int, repository_case_id: int, order: Optional[int] = 0) -> TestRunCase:
        """実行とケースの関連を冪等に作成する。ステータスは結果の記録後に設定する"""
        now = utcnow()
        return upsert(
            self.session,
            TestRunCase,
            values={
                "test_run_id": test_run_id,
                "repository_case_id": repository_case_id,
                "order": order or 0,
                "is_completed": False,
                "created_at": now,
                "updated_at": now,
            },
            conflict_columns=["test_run_id", "repository_case_id"],
        )
