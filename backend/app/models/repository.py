from sqlmodel import Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from .base import TimestampModel
from .enums import RepositoryCaseSource

# フォルダツリーのルートを表す親ID。NULLは一意制約で衝突しないため0を使う
ROOT_FOLDER_PARENT_ID = 0

class RepositoryFolder(TimestampModel, table=True):
    __tablename__ = "repositoryfolder"
    """リポジトリ内の階層フォルダ"""
    __table_args__ = (
        UniqueConstraint(
            "project_id", "repository_id", "parent_id", "name", "is_deleted",
            name="uq_repositoryfolder_path",
        ),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    repository_id: int = Field(foreign_key="repository.id", index=True)
    parent_id: int = Field(default=ROOT_FOLDER_PARENT_ID, index=True)
    name: str
    order: int = Field(default=0)
    is_deleted: bool = Field(default=False)

class RepositoryCase(TimestampModel, table=True):
    __tablename__ = "repositorycase"
    """テストケース定義。(project_id, name, class_name, source) で一意"""
    __table_args__ = (
        UniqueConstraint(
            "project_id", "name", "class_name", "source",
            name="uq_repositorycase_natural_key",
        ),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    repository_id: int = Field(foreign_key="repository.id")
    folder_id: int = Field(foreign_key="repositoryfolder.id")
    template_id: int = Field(foreign_key="template.id")
    state_id: int = Field(foreign_key="workflow.id")
    name: str
    class_name: str
    source: RepositoryCaseSource = Field(default=RepositoryCaseSource.MANUAL)
    automated: bool = Field(default=False)
    is_deleted: bool = Field(default=False)
    is_archived: bool = Field(default=False)
    order: int = Field(default=0)
    # 見積もり（秒）。実行時間から算出する
    estimate: Optional[int] = None
    forecast_manual: Optional[int] = None
