"""
アトミックなアップサート（INSERT ... ON CONFLICT ... DO UPDATE ... RETURNING）のヘルパー

同じプロジェクトに対する並行インポートが同じフォルダやケースを同時に作成しようとしても、
読み取り後に書き込む方式ではなくストレージ層の一意制約で整合性を保つ。
本番ではPostgreSQL、テストではSQLiteの方言別INSERTを使う。
"""
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, SQLModel

from app.exceptions import DatabaseException

M = TypeVar("M", bound=SQLModel)


def _dialect_insert(session: Session, model: Type[SQLModel]):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise DatabaseException(
        f"Atomic upsert is not supported for dialect: {dialect}",
        details={"dialect": dialect, "table": model.__tablename__},
    )


def upsert(
    session: Session,
    model: Type[M],
    values: Dict[str, Any],
    conflict_columns: List[str],
    update_values: Optional[Dict[str, Any]] = None,
) -> M:
    """
    一意キーで行を作成または更新し、結果の行を返す

    Args:
        session: データベースセッション
        model: 対象のSQLModelテーブルクラス
        values: INSERT時の値
        conflict_columns: 一意制約を構成する列
        update_values: 競合時に更新する値（Noneの場合は既存行をそのまま返す）

    Returns:
        作成または更新された行
    """
    stmt = _dialect_insert(session, model).values(**values)
    if update_values:
        stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=update_values)
    else:
        # 何も変えない更新を行い、RETURNINGで既存行のIDを受け取る
        key = conflict_columns[0]
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_columns,
            set_={key: getattr(stmt.excluded, key)},
        )
    stmt = stmt.returning(model.id)

    row_id = session.execute(stmt).scalar_one()
    instance = session.get(model, row_id, populate_existing=True)
    if instance is None:
        raise DatabaseException(
            "Upserted row could not be loaded",
            details={"table": model.__tablename__, "id": row_id},
        )
    return instance
