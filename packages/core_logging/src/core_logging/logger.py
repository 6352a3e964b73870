"""Structured JSON logging shared by every navigator component.

One JSON object per line on stdout. A fixed set of envelope keys stays at the
top level; everything else a call site passes is nested under ``meta``.
"""
import contextvars
import logging
import os
import sys
import time
from typing import Any, Dict, Optional

import orjson

from core_utils.fingerprints import sha256_hex

_REQUEST_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "navigator_request_id", default=None
)


def bind_request_id(request_id: Optional[str]) -> None:
    _REQUEST_ID.set(request_id)


def current_request_id() -> Optional[str]:
    return _REQUEST_ID.get()


class _RequestIdFilter(logging.Filter):
    """Stamp the bound request id onto records that were not given one explicitly."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            bound = _REQUEST_ID.get()
            if bound:
                record.request_id = bound
        return True


# Attributes every LogRecord already carries; extras may not reuse them.
_RESERVED = frozenset(logging.LogRecord("x", 0, "", 0, "", None, None).__dict__) | {
    "message", "asctime", "taskName",
}

_ENVELOPE_KEYS = frozenset({
    "service", "stage", "latency_ms", "request_id", "cache_key", "key_fp",
    "prompt_fingerprint", "status_code", "path", "method", "mode", "error_code",
})


def _fallback(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", errors="replace")
    return str(obj)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "service": os.getenv("SERVICE_NAME", record.name),
            "event": record.getMessage(),
        }
        meta: Dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _RESERVED:
                continue
            if key == "message_extra":
                line["message"] = value
            elif key in _ENVELOPE_KEYS:
                line[key] = value
            else:
                meta[key] = value
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        if meta:
            line["meta"] = meta
        return orjson.dumps(line, default=_fallback).decode("utf-8")


class DynamicStdoutHandler(logging.StreamHandler):
    """Resolve ``sys.stdout`` at emit time so redirected or captured stdout sees output."""

    def emit(self, record: logging.LogRecord) -> None:
        self.setStream(sys.stdout)
        super().emit(record)


def get_logger(name: str = "navigator", level: Optional[str] = None) -> logging.Logger:
    """Return a JSON logger; dotted names propagate to their top-level parent."""
    logger = logging.getLogger(name)
    if "." in name:
        logger.handlers.clear()
        logger.propagate = True
    else:
        if not any(isinstance(h, DynamicStdoutHandler) for h in logger.handlers):
            handler = DynamicStdoutHandler()
            handler.setFormatter(JsonFormatter())
            logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(level or os.getenv("SERVICE_LOG_LEVEL", "INFO"))
    if not any(isinstance(f, _RequestIdFilter) for f in logger.filters):
        logger.addFilter(_RequestIdFilter())
    return logger


def _sanitize_extra(extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Rename keys that collide with LogRecord attributes (``message`` keeps its content)."""
    out: Dict[str, Any] = {}
    for key, value in (extra or {}).items():
        key = str(key)
        if key == "message":
            out["message_extra"] = value
        elif key in _RESERVED:
            out[f"meta_{key}"] = value
        else:
            out[key] = value
    return out


def log_stage(logger: logging.Logger, stage: str, event: str, **fields: Any) -> None:
    """log_stage(logger, "cache", "cache.hit", key_fp=fp) emits one line tagged with *stage*."""
    level = fields.pop("level", logging.INFO)
    logger.log(level, event, extra=_sanitize_extra({"stage": stage, **fields}))


def record_error(
    code: str,
    *,
    where: str,
    message: str,
    logger: logging.Logger,
    context: Optional[Dict[str, Any]] = None,
    level: str = "ERROR",
    **extras: Any,
) -> None:
    """Emit the single normalized ``error`` line for a failure path."""
    fields: Dict[str, Any] = {
        "stage": extras.pop("stage", None) or "error",
        "error_code": str(code),
        "error_message": message,
        "where": where,
    }
    if isinstance(context, dict):
        fields["context"] = context
    fields.update(extras)
    levelno = logging.getLevelName((level or "ERROR").upper())
    if not isinstance(levelno, int):
        levelno = logging.ERROR
    logger.log(levelno, "error", extra=_sanitize_extra(fields))


_SEEN_ONCE: set[str] = set()


def log_once_process(logger: logging.Logger, key: str, *, event: str,
                     level: int = logging.INFO, **fields: Any) -> None:
    """Log *event* the first time *key* is seen in this process; later calls are no-ops."""
    if key in _SEEN_ONCE:
        return
    _SEEN_ONCE.add(key)
    logger.log(level, event, extra=_sanitize_extra(fields))


# cache helpers: raw keys never reach the log, only a short fingerprint

def cache_key_fp(key: Any) -> str:
    return "sha256:" + sha256_hex(str(key))[:16]


def _cache_line(logger: logging.Logger, event: str, namespace: str, key: Any, **fields: Any) -> None:
    log_stage(logger, "cache", event, namespace=str(namespace), key_fp=cache_key_fp(key), **fields)


def log_cache_hit(logger: logging.Logger, *, namespace: str, key: Any,
                  age_ms: Optional[int] = None) -> None:
    _cache_line(logger, "cache.hit", namespace, key, age_ms=age_ms)


def log_cache_miss(logger: logging.Logger, *, namespace: str, key: Any) -> None:
    _cache_line(logger, "cache.miss", namespace, key)


def log_cache_join(logger: logging.Logger, *, namespace: str, key: Any) -> None:
    _cache_line(logger, "cache.join", namespace, key)


def log_cache_set(logger: logging.Logger, *, namespace: str, key: Any,
                  ttl_ms: Optional[int] = None, size: Optional[int] = None) -> None:
    _cache_line(logger, "cache.set", namespace, key, ttl_ms=ttl_ms, size=size)


def log_cache_evict(logger: logging.Logger, *, namespace: str, key: Any, reason: str) -> None:
    _cache_line(logger, "cache.evict", namespace, key, reason=reason)
