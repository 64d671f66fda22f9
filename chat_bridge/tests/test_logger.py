import json
import logging

from chat_bridge.infrastructure.logging.logger import REDACT_LIMIT, JsonFormatter


def _record(msg, extra):
    record = logging.LogRecord("chat_bridge", logging.INFO, __file__, 1, msg, None, None)
    record.extra = extra
    return record


def test_json_formatter_flattens_extra():
    line = JsonFormatter().format(_record("chat.done", {"elapsed_ms": 12, "model": "deepseek-chat"}))
    payload = json.loads(line)
    assert payload["msg"] == "chat.done"
    assert payload["level"] == "INFO"
    assert payload["elapsed_ms"] == 12
    assert payload["model"] == "deepseek-chat"


def test_json_formatter_redacts_extra_strings():
    long_line = "x" * 500
    payload = json.loads(JsonFormatter(redact=True).format(_record("stream.bad_line", {"line": long_line, "n": 3})))
    assert payload["line"] == "x" * REDACT_LIMIT
    assert payload["n"] == 3
