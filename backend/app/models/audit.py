from sqlmodel import Field
from sqlalchemy import Column
from typing import Optional, Dict, Any
from .base import TimestampModel
from .json_encode_dict import JSONEncodedDict

class AuditLog(TimestampModel, table=True):
    __tablename__ = "auditlog"
    """監査ログ（一括作成などの操作記録）"""
    id: Optional[int] = Field(default=None, primary_key=True)
    action: str = Field(index=True)
    entity_name: str
    record_count: int = Field(default=0)
    project_id: Optional[int] = Field(default=None, index=True)
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONEncodedDict))
