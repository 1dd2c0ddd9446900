from typing import Any

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session


def upsert(db: Session, model: type, natural_key: dict[str, Any], fields: dict[str, Any]) -> None:
    """Insert a row, or overwrite ``fields`` on the row already holding ``natural_key``.

    The statement is a single insert-or-update, so two concurrent callers with the
    same key end with one row. ``natural_key`` must match a unique constraint on
    ``model``'s table. The caller owns the transaction.
    """
    values = {**natural_key, **fields}
    dialect = db.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=list(natural_key), set_=fields)
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(model).values(**values).on_duplicate_key_update(**fields)
    else:
        raise ValueError(f"upsert is not supported on {dialect}")

    db.execute(stmt)
