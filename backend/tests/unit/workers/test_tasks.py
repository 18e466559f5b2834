from unittest.mock import MagicMock, patch
from sqlmodel import select
from app.models import AuditLog
from app.workers.tasks import audit_bulk_create_task
from app.services.imports.audit import CeleryAuditSink, DatabaseAuditSink, get_audit_sink


def test_audit_bulk_create_task_writes_log(session):
    """監査ログタスクの正常系テスト"""
    result = audit_bulk_create_task("TestResult", 3, 1, {"source": "JUNIT Import", "testRunId": 5, "fileCount": 1})

    assert result["status"] == "completed"
    log = session.exec(select(AuditLog)).one()
    assert log.id == result["id"]
    assert log.action == "BULK_CREATE"
    assert log.entity_name == "TestResult"
    assert log.record_count == 3
    assert log.project_id == 1
    assert log.details["testRunId"] == 5


def test_audit_bulk_create_task_error(monkeypatch):
    """DBエラー時はエラー結果を返す"""
    def broken_session(*args, **kwargs):
        raise RuntimeError("database is locked")
    monkeypatch.setattr("app.workers.tasks.Session", broken_session)

    result = audit_bulk_create_task("TestResult", 3)

    assert result == {"status": "error", "message": "database is locked"}


def test_database_sink_records_synchronously(session):
    DatabaseAuditSink().audit_bulk_create("TestResult", 2, None)

    assert session.exec(select(AuditLog)).one().record_count == 2


def test_database_sink_tolerates_task_error(monkeypatch):
    monkeypatch.setattr(
        "app.services.imports.audit.audit_bulk_create_task",
        MagicMock(return_value={"status": "error", "message": "boom"}),
    )

    DatabaseAuditSink().audit_bulk_create("TestResult", 2, None)


def test_celery_sink_enqueues_task():
    with patch("app.services.imports.audit.audit_bulk_create_task") as mock_task:
        CeleryAuditSink().audit_bulk_create("TestResult", 4, 1, {"fileCount": 2})

    mock_task.delay.assert_called_once_with("TestResult", 4, 1, {"fileCount": 2})


def test_celery_sink_swallows_broker_errors():
    with patch("app.services.imports.audit.audit_bulk_create_task") as mock_task:
        mock_task.delay.side_effect = ConnectionError("broker unavailable")

        CeleryAuditSink().audit_bulk_create("TestResult", 4, 1)

    mock_task.delay.assert_called_once()


def test_get_audit_sink_follows_config(monkeypatch):
    monkeypatch.setattr("app.services.imports.audit.config.get", lambda category, name: True)
    assert isinstance(get_audit_sink(), CeleryAuditSink)

    monkeypatch.setattr("app.services.imports.audit.config.get", lambda category, name: False)
    assert isinstance(get_audit_sink(), DatabaseAuditSink)
