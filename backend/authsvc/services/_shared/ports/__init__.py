"""
authsvc.services._shared.ports
==============================

Collection of *ports* (hexagonal interfaces) that define the contracts the
credential engine depends on.

These ports decouple the service layer from concrete implementations of
persistence, time, and security notifications.

Modules
-------
- :mod:`credential_store`:
    Defines :class:`~.CredentialStore`, :class:`~.AccountSource`,
    :class:`~.AccountView` and :class:`~.StoredCredential`: account lookup plus
    one hashed refresh credential per account, with atomic compare-and-swap.

- :mod:`clock`:
    Defines :class:`~.Clock`: injectable time source for expiry logic.

- :mod:`notifier`:
    Defines :class:`~.SecurityNotifier`: best-effort warnings on suspicious
    refresh attempts.

Design Notes
------------
All these ports follow *Dependency Inversion Principle (DIP)* to keep
the service layer independent from implementation details.
Concrete adapters (SQLAlchemy, Redis, logging) implement these interfaces
under ``authsvc.infra``; in-memory doubles live next to each port.
"""

from __future__ import annotations

from .clock import Clock, FrozenClock, SystemClock
from .credential_store import (
    AccountSource,
    AccountView,
    CredentialStore,
    InMemoryCredentialStore,
    StoredCredential,
)
from .notifier import IPChangeNotice, RecordingNotifier, SecurityNotifier

__all__ = [
    "Clock",
    "SystemClock",
    "FrozenClock",
    "AccountSource",
    "AccountView",
    "CredentialStore",
    "StoredCredential",
    "InMemoryCredentialStore",
    "SecurityNotifier",
    "RecordingNotifier",
    "IPChangeNotice",
]
