import io, json
import logging
from contextlib import redirect_stdout

from core_logging import get_logger, log_stage, log_once_process


def _lines(fn) -> list[dict]:
    buf = io.StringIO()
    with redirect_stdout(buf):
        fn()
    return [json.loads(line) for line in buf.getvalue().splitlines() if line.strip()]


def test_log_stage_emits_single_line():
    logger = get_logger("test-log-stage")
    out = _lines(lambda: log_stage(logger, "unit", "event", request_id="abc123", prompt_fingerprint="pf"))
    assert len(out) == 1
    assert out[0]["event"] == "event"
    assert out[0]["prompt_fingerprint"] == "pf"


def test_log_stage_level_override():
    logger = get_logger("test-log-stage-level")
    out = _lines(lambda: log_stage(logger, "unit", "warned", level=logging.WARNING))
    assert out[0]["level"] == "WARNING"


def test_child_logger_propagates_to_service_root():
    get_logger("test-root-svc")
    child = get_logger("test-root-svc.module")
    out = _lines(lambda: log_stage(child, "unit", "from.child"))
    assert [r["event"] for r in out] == ["from.child"]


def test_log_once_process_dedupes():
    logger = get_logger("test-log-once")

    def emit_twice():
        log_once_process(logger, "unit.once", event="once")
        log_once_process(logger, "unit.once", event="once")

    assert len(_lines(emit_twice)) == 1
