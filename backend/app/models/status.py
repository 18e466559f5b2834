from sqlmodel import Field
from typing import Optional, List
from .base import TimestampModel

class StatusProjectLink(TimestampModel, table=True):
    __tablename__ = "statusprojectlink"
    """ステータスを利用できるプロジェクト"""
    status_id: int = Field(foreign_key="status.id", primary_key=True)
    project_id: int = Field(foreign_key="project.id", primary_key=True)

class StatusScopeLink(TimestampModel, table=True):
    __tablename__ = "statusscopelink"
    """ステータスの利用スコープ（automation, manual など）"""
    status_id: int = Field(foreign_key="status.id", primary_key=True)
    scope: str = Field(primary_key=True)

class Status(TimestampModel, table=True):
    __tablename__ = "status"
    """プロジェクト単位で設定する結果ステータス"""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    system_name: str = Field(index=True)
    # カンマ区切り。各形式のネイティブな語彙とのあいまい一致に使う
    aliases: Optional[str] = None
    color: Optional[str] = None
    is_success: bool = Field(default=False)
    is_completed: bool = Field(default=False)
    is_enabled: bool = Field(default=True)
    is_deleted: bool = Field(default=False)
    order: int = Field(default=0)

    def alias_list(self) -> List[str]:
        if not self.aliases:
            return []
        return [alias.strip().lower() for alias in self.aliases.split(",") if alias.strip()]
