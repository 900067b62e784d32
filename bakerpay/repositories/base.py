"""Base repository with common lookups.

Repositories hand out frozen records, never ORM rows, so nothing a caller
holds changes when the session is flushed or refreshed.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.orm import Session

from db.models import Base

M = TypeVar("M", bound=Base)
R = TypeVar("R")


class BaseRepository(Generic[M, R]):
    """
    Base repository over one ORM model.

    Subclasses set `model` and implement `_to_record`.
    """

    model: type[M]

    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, row: M) -> R:
        raise NotImplementedError

    def _get_row(self, *key: Any) -> M | None:
        return self.session.get(self.model, key[0] if len(key) == 1 else key)

    def _all(self, stmt: Select[tuple[M]]) -> list[R]:
        rows: Sequence[M] = self.session.scalars(stmt).all()
        return [self._to_record(r) for r in rows]

    def _count(self, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model).where(*conditions)
        return self.session.scalar(stmt) or 0

    def _save(self, row: M) -> None:
        self.session.add(row)
        self.session.flush()
