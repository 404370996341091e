from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class SecurityNotifier(Protocol):
    """
    Port for security warnings sent to an account's contact address.

    Delivery is best-effort: callers never let a notifier failure change the
    outcome of the operation that triggered it.
    """

    def notify_ip_change(
        self,
        *,
        contact: str,
        account_id: int,
        old_ip: str,
        new_ip: str,
        at: datetime,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class IPChangeNotice:
    """A recorded IP-change warning."""

    contact: str
    account_id: int
    old_ip: str
    new_ip: str
    at: datetime


class RecordingNotifier(SecurityNotifier):
    """Notifier double that keeps every warning in memory."""

    def __init__(self) -> None:
        self.sent: list[IPChangeNotice] = []

    def notify_ip_change(
        self,
        *,
        contact: str,
        account_id: int,
        old_ip: str,
        new_ip: str,
        at: datetime,
    ) -> None:
        self.sent.append(
            IPChangeNotice(
                contact=contact,
                account_id=account_id,
                old_ip=old_ip,
                new_ip=new_ip,
                at=at,
            )
        )
