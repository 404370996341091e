from __future__ import annotations

import logging
from datetime import UTC, datetime

from authsvc.infra.notify.logging_notifier import SUBJECT, LoggingSecurityNotifier


def test_warning_is_logged_with_recipient_and_addresses(caplog):
    at = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    with caplog.at_level(logging.WARNING, logger="authsvc.infra.notify.logging_notifier"):
        LoggingSecurityNotifier().notify_ip_change(
            contact="alice@example.com",
            account_id=7,
            old_ip="1.2.3.4",
            new_ip="5.6.7.8",
            at=at,
        )

    record = caplog.records[-1]
    message = record.getMessage()
    assert record.levelno == logging.WARNING
    assert record.event == "security.ip_change"
    assert record.account_id == 7
    assert "To: alice@example.com" in message
    assert SUBJECT in message
    assert "Old IP: 1.2.3.4" in message
    assert "New IP: 5.6.7.8" in message
    assert "2024-01-01T12:00:00+00:00" in message
