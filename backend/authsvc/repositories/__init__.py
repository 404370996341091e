"""Repository package exposing persistence-layer access."""

from __future__ import annotations

from authsvc.repositories.account import AccountRepository
from authsvc.repositories.base import BaseRepository

__all__ = ["BaseRepository", "AccountRepository"]
