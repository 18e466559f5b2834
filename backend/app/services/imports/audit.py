"""
監査ログの送信先

インポートは監査ログの失敗で失敗しない。記録・送信時の例外はここでログに残して握りつぶす。
"""
from typing import Any, Dict, Optional

from app.config import config
from app.logging_config import logger
from app.workers.tasks import audit_bulk_create_task


class AuditSink:
    def audit_bulk_create(
        self,
        entity_name: str,
        count: int,
        project_id: Optional[int],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        raise NotImplementedError


class DatabaseAuditSink(AuditSink):
    """呼び出し元のプロセスで同期的に記録する"""

    def audit_bulk_create(self, entity_name, count, project_id, metadata=None) -> None:
        result = audit_bulk_create_task(entity_name, count, project_id, metadata)
        if result.get("status") != "completed":
            logger.warning(f"Audit log was not recorded: {result.get('message')}")


class CeleryAuditSink(AuditSink):
    """Celeryワーカーに記録を依頼する"""

    def audit_bulk_create(self, entity_name, count, project_id, metadata=None) -> None:
        try:
            audit_bulk_create_task.delay(entity_name, count, project_id, metadata)
        except Exception as e:
            logger.error(f"Failed to enqueue audit log for {entity_name}: {e}", exc_info=True)


def get_audit_sink() -> AuditSink:
    if config.get("import", "audit_async"):
        return CeleryAuditSink()
    return DatabaseAuditSink()
