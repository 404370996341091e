"""
SQLAlchemy implementation of UnitOfWork over the Flask-scoped session.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from authsvc.core.extensions import db
from authsvc.repositories import AccountRepository
from authsvc.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    Bind the account repository to one session and own its transaction.

    :param session: Explicit session; defaults to ``db.session``. The session
        is started lazily by the first statement.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session: Session = session if session is not None else db.session
        self.accounts = AccountRepository(session=self.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
