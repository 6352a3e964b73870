import io, json
from contextlib import redirect_stdout

from core_logging import get_logger, log_stage, bind_request_id, record_error


def _capture(fn) -> list[dict]:
    buf = io.StringIO()
    with redirect_stdout(buf):
        fn()
    out = []
    for line in buf.getvalue().splitlines():
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return out


def test_log_envelope_compliance():
    """Known fields stay top-level; stage-specific fields nest under *meta*."""
    logger = get_logger("navigator_fmt_test")

    records = _capture(lambda: log_stage(
        logger, "cache", "cache.hit",
        request_id="req123",
        latency_ms=3,
        namespace="options",
        age_ms=1200,
    ))

    payload = next(r for r in records if r.get("event") == "cache.hit")
    assert payload["level"] == "INFO"
    assert payload["stage"] == "cache"
    assert payload["request_id"] == "req123"
    assert payload["latency_ms"] == 3
    assert "ts" in payload
    assert payload["meta"]["namespace"] == "options"
    assert payload["meta"]["age_ms"] == 1200
    assert "request_id" not in payload["meta"]


def test_bound_request_id_is_injected():
    logger = get_logger("navigator_rid_test")
    bind_request_id("bound-rid")
    try:
        records = _capture(lambda: log_stage(logger, "unit", "with.bound.id"))
    finally:
        bind_request_id(None)
    assert records[-1]["request_id"] == "bound-rid"


def test_reserved_keys_are_namespaced():
    logger = get_logger("navigator_reserved_test")
    records = _capture(lambda: log_stage(logger, "unit", "reserved", message="hello", name="clash"))
    rec = records[-1]
    assert rec["message"] == "hello"
    assert rec["meta"]["meta_name"] == "clash"


def test_record_error_shape():
    logger = get_logger("navigator_err_test")
    records = _capture(lambda: record_error(
        "upstream_http_error", where="options_source.fetch", message="503",
        logger=logger, level="WARNING", stage="llm", status_code=503,
    ))
    rec = records[-1]
    assert rec["event"] == "error"
    assert rec["level"] == "WARNING"
    assert rec["stage"] == "llm"
    assert rec["error_code"] == "upstream_http_error"
    assert rec["status_code"] == 503
    assert rec["meta"]["where"] == "options_source.fetch"
