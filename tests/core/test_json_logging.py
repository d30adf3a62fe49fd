import json
import logging
import sys

from core.logging import JSONFormatter


def _record(msg, *args, **extra):
    record = logging.LogRecord("sdrtracker", logging.INFO, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_payload_fields():
    payload = json.loads(JSONFormatter().format(_record("Meeting %s held", "m-1")))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "sdrtracker"
    assert payload["message"] == "Meeting m-1 held"
    assert "timestamp" in payload


def test_extra_attributes_are_merged():
    payload = json.loads(JSONFormatter().format(_record("recompute", period="2026-03")))
    assert payload["period"] == "2026-03"


def test_exception_is_rendered():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord(
            "sdrtracker", logging.ERROR, __file__, 10, "failed", (), sys.exc_info(),
        )
    payload = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in payload["exc_info"]
