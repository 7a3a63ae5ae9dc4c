import json
import logging

from hydrowatch.core.logging import JsonFormatter, RequestIdFilter
from hydrowatch.core.request_id import ensure_request_id, set_request_id


def _record(**extra):
    record = logging.LogRecord("hydrowatch.ml.registry", logging.INFO, __file__, 1, "model_loaded", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_carries_request_id_and_extras():
    rid = ensure_request_id("corr-42")
    record = _record(model="health-risk", state="ready", duration_ms=12, unrelated="dropped")
    RequestIdFilter().filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert rid == "corr-42"
    assert payload["request_id"] == "corr-42"
    assert payload["msg"] == "model_loaded"
    assert (payload["model"], payload["state"], payload["duration_ms"]) == ("health-risk", "ready", 12)
    assert "unrelated" not in payload
    set_request_id(None)


def test_missing_request_id_is_dash():
    set_request_id(None)
    record = _record()
    RequestIdFilter().filter(record)

    assert json.loads(JsonFormatter().format(record))["request_id"] == "-"
