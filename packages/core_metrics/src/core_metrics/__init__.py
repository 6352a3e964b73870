"""
Lazily-declared Prometheus collectors.

``counter("x_total", 1, route="a")`` creates ``x_total`` on first use with the
label names of that first call. Later calls with a different label set are
dropped rather than raised: metrics never fail a request.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

_collectors: Dict[str, Any] = {}
_lock = threading.Lock()


def _collector(kind: Callable[..., Any], name: str, labels: Dict[str, Any]) -> Any:
    with _lock:
        found = _collectors.get(name)
        if found is None:
            # another import path may already have registered it
            found = REGISTRY._names_to_collectors.get(name)  # type: ignore[attr-defined]
            if found is None:
                found = kind(name, f"{kind.__name__} {name}", labelnames=sorted(labels))
            _collectors[name] = found
        return found


def _child(kind: Callable[..., Any], name: str, labels: Dict[str, Any]) -> Any:
    metric = _collector(kind, name, labels)
    return metric.labels(**{k: str(v) for k, v in labels.items()}) if labels else metric


def counter(name: str, inc: int | float = 1, **labels: Any) -> None:
    try:
        _child(Counter, name, labels).inc(inc)
    except ValueError:
        pass


def histogram(name: str, value: float, **labels: Any) -> None:
    try:
        _child(Histogram, name, labels).observe(value)
    except ValueError:
        pass


def histogram_ms(name: str, elapsed_ms: float, **labels: Any) -> None:
    """Observe a millisecond latency; *name* should carry an ``_ms`` suffix."""
    histogram(name, elapsed_ms, **labels)


def gauge(name: str, value: float, **labels: Any) -> None:
    try:
        _child(Gauge, name, labels).set(value)
    except ValueError:
        pass


__all__ = ["counter", "histogram", "histogram_ms", "gauge"]
