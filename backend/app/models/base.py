from sqlmodel import Field, SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
from datetime import datetime, UTC
import os
from app.config import settings

# データベース接続設定
# テスト環境の場合はインメモリSQLiteを使用
if os.environ.get("TESTING") == "1":
    DATABASE_URL = "sqlite://"
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    DATABASE_URL = settings.DATABASE_URL
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

def get_session():
    with Session(engine) as session:
        yield session

def utcnow() -> datetime:
    return datetime.now(UTC)

# ベースモデル
class TimestampModel(SQLModel):
    """タイムスタンプを持つ全モデルの基底クラス"""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
