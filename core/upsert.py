"""
INSERT ... ON CONFLICT helpers.
Every write of the import pipeline is keyed on a natural unique constraint,
so a single statement both resolves and writes the row.
"""
from typing import Dict, Iterable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert(db: Session, model):
    dialect = db.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect](model)
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on '{dialect}'") from None


def upsert(db: Session, model, values: Dict, conflict_on: Iterable[str], update: Iterable[str], extra_set: Optional[Dict] = None) -> int:
    """Insert or update on the unique key `conflict_on`; only `update` columns are overwritten. Returns the row id."""
    stmt = _insert(db, model).values(**values)
    set_ = {col: stmt.excluded[col] for col in update}
    if extra_set:
        set_.update(extra_set)
    stmt = stmt.on_conflict_do_update(index_elements=list(conflict_on), set_=set_).returning(model.id)
    return db.execute(stmt).scalar_one()


def insert_ignore(db: Session, model, values: Dict, conflict_on: Iterable[str]) -> Optional[int]:
    """Insert unless the unique key exists. Returns the new id, or None when the row was already there."""
    stmt = (
        _insert(db, model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_on))
        .returning(model.id)
    )
    return db.execute(stmt).scalar_one_or_none()
