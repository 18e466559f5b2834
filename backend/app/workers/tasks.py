import logging
from typing import Any, Dict, Optional

from sqlmodel import Session

from app.workers import celery_app
from app.models import AuditLog
from app.models import base

logger = logging.getLogger(__name__)

BULK_CREATE = "BULK_CREATE"


@celery_app.task
def audit_bulk_create_task(
    entity_name: str,
    count: int,
    project_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    一括作成の監査ログを記録するCeleryタスク

    Args:
        entity_name: 作成したエンティティ名（例: "TestResult"）
        count: 作成件数
        project_id: プロジェクトID
        metadata: 付加情報（取り込み元の形式、実行IDなど）

    Returns:
        dict: 記録結果
    """
    try:
        with Session(base.engine) as session:
            log = AuditLog(
                action=BULK_CREATE,
                entity_name=entity_name,
                record_count=count,
                project_id=project_id,
                details=metadata or {},
            )
            session.add(log)
            session.commit()
            session.refresh(log)
            return {"status": "completed", "id": log.id}
    except Exception as e:
        logger.error(f"Error writing audit log for {entity_name}: {e}", exc_info=True)
        return {"status": "error", "message": str(e)}
