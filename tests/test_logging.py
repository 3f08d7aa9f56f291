from __future__ import annotations

import json
import logging

from blulog.core.logging import JsonLogFormatter, set_correlation_id


def test_json_log_formatter_includes_correlation_and_extras() -> None:
    set_correlation_id("req-42")
    record = logging.LogRecord("blulog.auth", logging.WARNING, __file__, 1, "token_rejected", None, None)
    record.token_kind = "refresh"
    record.account_id = ""

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["message"] == "token_rejected"
    assert payload["level"] == "WARNING"
    assert payload["correlation_id"] == "req-42"
    assert payload["token_kind"] == "refresh"
    assert "account_id" not in payload
