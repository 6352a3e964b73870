from __future__ import annotations
from typing import Any

# Route all metrics through core_metrics, but hide it behind this stable facade
from core_metrics import counter as _counter, histogram as _histogram

__all__ = [
    "counter",
    "histogram",
    "navigator_requests",
    "navigator_upstream_error",
    "navigator_fallback",
    "navigator_resolve_latency_ms",
]

def counter(name: str, value: float, **attrs: Any) -> None:
    """
    Stable facade for counters. Use this instead of importing core_metrics
    directly to prevent naming drift.
    """
    _counter(name, value, **attrs)

def histogram(name: str, value: float, **attrs: Any) -> None:
    _histogram(name, value, **attrs)

# ── Canonical convenience wrappers for common navigator metrics ─────────────

def navigator_requests(mode: str, cache: str) -> None:
    """Count resolved requests by result mode and cache outcome (hit|miss)."""
    counter("navigator_requests_total", 1, mode=mode, cache=cache)

def navigator_upstream_error(kind: str) -> None:
    counter("navigator_upstream_errors_total", 1, kind=kind)

def navigator_fallback(reason: str) -> None:
    """Count stub results by why the fallback was taken."""
    counter("navigator_fallback_total", 1, reason=reason)

def navigator_resolve_latency_ms(value: float) -> None:
    histogram("navigator_resolve_latency_ms", value)
