"""Persistence-only repository base for SQLAlchemy 2.x models.

Repositories never commit or roll back (the Unit of Work owns the
transaction) and never hash, sign or validate anything.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from authsvc.core.extensions import db

E = TypeVar("E")  # mapped entity type with an integer ``id`` primary key


class BaseRepository(Generic[E]):
    """Shared lookups for one mapped model.

    Subclasses set ``model``.

    :param session: Session of the surrounding Unit of Work; the
        Flask-scoped ``db.session`` when omitted.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Load by primary key, or ``None``."""
        stmt = select(self.model).where(self.model.id == entity_id)  # type: ignore[attr-defined]
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        return int(self.session.execute(stmt).scalar_one())
