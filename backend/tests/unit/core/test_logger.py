from __future__ import annotations

import json
import logging

from flask import Flask

from authsvc.core.logger import JSONFormatter, configure_logging, ensure_request_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="authsvc.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="refresh.rejected %s",
        args=("now",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_known_extras():
    record = _record(event="refresh.rejected", account_id=3, reason="HashMismatchError")

    payload = json.loads(JSONFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["name"] == "authsvc.test"
    assert payload["message"] == "refresh.rejected now"
    assert payload["event"] == "refresh.rejected"
    assert payload["account_id"] == 3
    assert payload["reason"] == "HashMismatchError"
    assert payload["request_id"] is None


def test_json_formatter_skips_unknown_extras():
    payload = json.loads(JSONFormatter().format(_record(password="hunter22")))
    assert "password" not in payload


def test_request_id_is_taken_from_header():
    app = Flask(__name__)
    with app.test_request_context(headers={"X-Request-ID": "req-123"}):
        assert ensure_request_id() == "req-123"
        assert ensure_request_id() == "req-123"


def test_request_id_is_generated_once_per_request():
    app = Flask(__name__)
    with app.test_request_context():
        first = ensure_request_id()
        assert first
        assert ensure_request_id() == first


def test_unsafe_correlation_header_is_replaced():
    app = Flask(__name__)
    with app.test_request_context(headers={"X-Request-ID": "bad id <script>"}):
        request_id = ensure_request_id()
        assert request_id != "bad id <script>"
        assert " " not in request_id


def test_correlation_id_header_is_accepted():
    app = Flask(__name__)
    with app.test_request_context(headers={"X-Correlation-ID": "corr-9"}):
        assert ensure_request_id() == "corr-9"


def test_configure_logging_unknown_level_falls_back_to_info():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("chatty")
        assert root.level == logging.INFO
    finally:
        root.setLevel(previous)
