from sqlmodel import Field, Relationship
from typing import Optional, List
from .base import TimestampModel
from .enums import WorkflowType, WorkflowScope

class ProjectWorkflowLink(TimestampModel, table=True):
    __tablename__ = "projectworkflowlink"
    """プロジェクトとワークフローの関連"""
    project_id: int = Field(foreign_key="project.id", primary_key=True)
    workflow_id: int = Field(foreign_key="workflow.id", primary_key=True)

class Project(TimestampModel, table=True):
    __tablename__ = "project"
    """プロジェクトモデル"""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    is_deleted: bool = Field(default=False)

    # リレーションシップ
    repositories: List["Repository"] = Relationship(back_populates="project", sa_relationship_kwargs={"cascade": "delete, all"})
    workflows: List["Workflow"] = Relationship(back_populates="projects", link_model=ProjectWorkflowLink)

class Repository(TimestampModel, table=True):
    __tablename__ = "repository"
    """テストケースリポジトリ（プロジェクトごとに1つ以上）"""
    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    is_active: bool = Field(default=True)
    is_deleted: bool = Field(default=False)
    is_archived: bool = Field(default=False)

    project: Project = Relationship(back_populates="repositories")

class Template(TimestampModel, table=True):
    __tablename__ = "template"
    """ケーステンプレート"""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    is_default: bool = Field(default=False)
    is_enabled: bool = Field(default=True)
    is_deleted: bool = Field(default=False)

class Workflow(TimestampModel, table=True):
    __tablename__ = "workflow"
    """ケース／実行のワークフロー状態"""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    workflow_type: WorkflowType = Field(default=WorkflowType.NOT_STARTED)
    scope: WorkflowScope = Field(default=WorkflowScope.CASES)
    order: int = Field(default=0)
    is_enabled: bool = Field(default=True)
    is_deleted: bool = Field(default=False)

    projects: List[Project] = Relationship(back_populates="workflows", link_model=ProjectWorkflowLink)

class Tag(TimestampModel, table=True):
    __tablename__ = "tag"
    """テスト実行に付与するタグ"""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    is_deleted: bool = Field(default=False)
