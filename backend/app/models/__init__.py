from .base import TimestampModel, get_session, engine
from .enums import TestRunType, RepositoryCaseSource, TestResultType, WorkflowType, WorkflowScope
from .project import Project, Repository, Template, Workflow, ProjectWorkflowLink, Tag
from .status import Status, StatusProjectLink, StatusScopeLink
from .repository import RepositoryFolder, RepositoryCase, ROOT_FOLDER_PARENT_ID
from .test import TestRun, TestRunCase, TestRunTagLink, TestSuite, TestResult, TestResultStep, TestResultAttachment
from .audit import AuditLog

__all__ = [
    "TimestampModel", "get_session", "engine",
    "TestRunType", "RepositoryCaseSource", "TestResultType", "WorkflowType", "WorkflowScope",
    "Project", "Repository", "Template", "Workflow", "ProjectWorkflowLink", "Tag",
    "Status", "StatusProjectLink", "StatusScopeLink",
    "RepositoryFolder", "RepositoryCase", "ROOT_FOLDER_PARENT_ID",
    "TestRun", "TestRunCase", "TestRunTagLink",
    "TestSuite", "TestResult", "TestResultStep", "TestResultAttachment",
    "AuditLog",
]

def init_db():
    """データベーススキーマを初期化する"""
    from sqlmodel import SQLModel
    from . import base

    with base.engine.begin() as conn:
        SQLModel.metadata.create_all(bind=conn)
