"""
Unit of Work contract shared by SQL-backed use cases.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authsvc.repositories.account import AccountRepository


class UnitOfWork(ABC):
    """
    Transactional boundary around one use case.

    Leaving the block normally commits; leaving it with an exception rolls
    back and lets the exception propagate. A failed commit is rolled back too,
    so a half-written refresh credential is never left behind.
    """

    accounts: AccountRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
