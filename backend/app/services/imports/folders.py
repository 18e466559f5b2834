"""
スイート名からリポジトリのフォルダ階層を作成する
"""
import re
from typing import List, Optional

from sqlmodel import Session, select

from app.config import config
from app.models import Repository, RepositoryFolder, ROOT_FOLDER_PARENT_ID
from app.models.base import utcnow
from app.utils.upsert import upsert
from app.logging_config import logger

SEGMENT_SEPARATOR = re.compile(r"[./]")


def split_suite_name(suite_name: Optional[str]) -> List[str]:
    """
    スイート名を "." と "/" で分割する

    >>> split_suite_name("com.app.LoginTests")
    ['com', 'app', 'LoginTests']
    """
    if not suite_name:
        return []
    return [segment.strip() for segment in SEGMENT_SEPARATOR.split(suite_name) if segment.strip()]


def default_folder_name(format_value: str) -> str:
    pattern = config.get("import", "default_folder_name")
    return pattern.format(format=format_value.upper())


class FolderPathBuilder:
    """フォルダの作成・再利用を担当する。同じパスは常に同じフォルダIDになる"""

    def __init__(self, session: Session):
        self.session = session

    def get_or_create_repository(self, project_id: int) -> Repository:
        """プロジェクトの最初の有効なリポジトリを返す。なければ作成する"""
        repository = self.session.exec(
            select(Repository)
            .where(
                Repository.project_id == project_id,
                Repository.is_active == True,  # noqa: E712
                Repository.is_deleted == False,  # noqa: E712
                Repository.is_archived == False,  # noqa: E712
            )
            .order_by(Repository.id)
        ).first()
        if repository:
            return repository

        logger.info(f"Creating repository for project {project_id}")
        repository = Repository(project_id=project_id)
        self.session.add(repository)
        self.session.commit()
        self.session.refresh(repository)
        return repository

    def ensure_folder(self, project_id: int, repository_id: int, parent_id: Optional[int], name: str) -> RepositoryFolder:
        return upsert(
            self.session,
            RepositoryFolder,
            values={
                "project_id": project_id,
                "repository_id": repository_id,
                "parent_id": parent_id if parent_id is not None else ROOT_FOLDER_PARENT_ID,
                "name": name,
                "order": 0,
                "is_deleted": False,
                "created_at": utcnow(),
                "updated_at": utcnow(),
            },
            conflict_columns=["project_id", "repository_id", "parent_id", "name", "is_deleted"],
        )

    def ensure_folder_path(
        self,
        project_id: int,
        repository_id: int,
        parent_id: Optional[int],
        segments: List[str],
    ) -> Optional[int]:
        """
        ルートから葉に向かって各セグメントのフォルダを作成または取得する

        Args:
            project_id: プロジェクトID
            repository_id: リポジトリID
            parent_id: 起点の親フォルダID（Noneはリポジトリのルート）
            segments: フォルダ名のリスト

        Returns:
            葉フォルダのID。segmentsが空の場合はparent_id
        """
        current = parent_id
        for segment in segments:
            folder = self.ensure_folder(project_id, repository_id, current, segment)
            current = folder.id
        return current
