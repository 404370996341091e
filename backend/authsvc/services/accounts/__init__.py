"""Account registration and lookup."""

from .dto import AccountOut, RegisterIn
from .service import AccountService

__all__ = ["AccountService", "AccountOut", "RegisterIn"]
