"""Security notifier that renders the IP-change warning as a log record."""

from __future__ import annotations

import logging
from datetime import datetime

from authsvc.services._shared.ports import SecurityNotifier

log = logging.getLogger(__name__)

SUBJECT = "Security Warning - New IP Detected"


def render_ip_change(*, account_id: int, old_ip: str, new_ip: str, at: datetime) -> str:
    """Return the body of the IP-change warning."""
    return (
        "Security warning: Refresh attempt from new IP\n"
        f"Account ID: {account_id}\n"
        f"Old IP: {old_ip}\n"
        f"New IP: {new_ip}\n"
        f"Time: {at.isoformat(timespec='seconds')}"
    )


class LoggingSecurityNotifier(SecurityNotifier):
    """
    Deliver warnings to the application log instead of a mail relay.

    The record carries the recipient, subject and body so a log shipper can
    forward it; no addresses are contacted from the request path.
    """

    def notify_ip_change(
        self,
        *,
        contact: str,
        account_id: int,
        old_ip: str,
        new_ip: str,
        at: datetime,
    ) -> None:
        body = render_ip_change(account_id=account_id, old_ip=old_ip, new_ip=new_ip, at=at)
        log.warning(
            "To: %s\nSubject: %s\n\n%s",
            contact,
            SUBJECT,
            body,
            extra={"event": "security.ip_change", "account_id": account_id},
        )
