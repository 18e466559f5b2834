import os

os.environ["TESTING"] = "1"
os.environ["AUDIT_ASYNC"] = "false"

import re
import pytest
from types import SimpleNamespace
from sqlalchemy import event
from sqlmodel import SQLModel, Session

from app.models import base
from app.models import (
    Project,
    ProjectWorkflowLink,
    Status,
    StatusProjectLink,
    StatusScopeLink,
    Template,
    Workflow,
    WorkflowScope,
    WorkflowType,
)

AUTOMATION = "automation"

# (system_name, name, aliases, is_success)
DEFAULT_STATUSES = [
    ("untested", "Untested", None, False),
    ("passed", "Passed", "pass,success", True),
    ("failed", "Failed", "failure,fail", False),
    ("error", "Error", None, False),
    ("skipped", "Skipped", "skip,pending", False),
]



def add_status(session, project_id, system_name, name=None, aliases=None, is_success=False, scopes=(AUTOMATION,), order=0):
    status = Status(
        name=name or system_name.title(),
        system_name=system_name,
        aliases=aliases,
        is_success=is_success,
        order=order,
    )
    session.add(status)
    session.flush()
    session.add(StatusProjectLink(status_id=status.id, project_id=project_id))
    for scope in scopes:
        session.add(StatusScopeLink(status_id=status.id, scope=scope))
    session.commit()
    return status.id


@pytest.fixture(autouse=True)
def reset_database():
    """各テストごとにスキーマを作り直す"""
    SQLModel.metadata.create_all(base.engine)
    yield
    SQLModel.metadata.drop_all(base.engine)


@pytest.fixture(name="session")
def session_fixture():
    """テスト用のデータベースセッション"""
    with Session(base.engine) as session:
        yield session


@pytest.fixture(name="bare_project")
def bare_project_fixture(session):
    """ステータスもワークフローも持たないプロジェクト"""
    project = Project(name="Bare Project")
    session.add(project)
    session.commit()
    session.refresh(project)
    return project


@pytest.fixture(name="seeded")
def seeded_fixture(session):
    """完了ワークフロー・既定テンプレート・自動テスト用ステータスを持つプロジェクト"""
    project = Project(name="Sample Project")
    workflow = Workflow(name="Done", workflow_type=WorkflowType.DONE, scope=WorkflowScope.CASES)
    template = Template(name="Default", is_default=True)
    session.add(project)
    session.add(workflow)
    session.add(template)
    session.commit()
    session.add(ProjectWorkflowLink(project_id=project.id, workflow_id=workflow.id))
    session.commit()

    statuses = {}
    for order, (system_name, name, aliases, is_success) in enumerate(DEFAULT_STATUSES):
        statuses[system_name] = add_status(
            session, project.id, system_name, name=name, aliases=aliases, is_success=is_success, order=order
        )

    return SimpleNamespace(
        project_id=project.id,
        workflow_id=workflow.id,
        template_id=template.id,
        statuses=statuses,
    )


@pytest.fixture(name="status_factory")
def status_factory_fixture(session):
    """プロジェクトにステータスを追加する関数"""
    def factory(project_id, system_name, **kwargs):
        return add_status(session, project_id, system_name, **kwargs)
    return factory


STATUS_SELECT = re.compile(r"^\s*SELECT\b.*\bFROM status\b", re.IGNORECASE | re.DOTALL)


@pytest.fixture(name="status_queries")
def status_queries_fixture():
    """statusテーブルへのSELECT文を記録する"""
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        if STATUS_SELECT.search(statement):
            statements.append(statement)

    event.listen(base.engine, "before_cursor_execute", record)
    yield statements
    event.remove(base.engine, "before_cursor_execute", record)
