"""Liveness (``/healthz``) and readiness (``/readyz``) probes for FastAPI apps."""

import inspect
from typing import Any, Callable, Optional

from fastapi import FastAPI

Probe = Callable[[], Any]


async def _probe(check: Probe) -> Any:
    """Run *check* (sync or async); a raising check reports as failed."""
    try:
        outcome = check()
        if inspect.isawaitable(outcome):
            outcome = await outcome
    except Exception:
        return False
    return outcome


def attach_health_routes(
    app: FastAPI,
    *,
    liveness: Optional[Probe] = None,
    readiness: Optional[Probe] = None,
) -> None:
    """A probe may return a bool or a dict; dicts are returned to the caller as-is."""

    async def healthz():
        outcome = True if liveness is None else await _probe(liveness)
        if isinstance(outcome, dict):
            return outcome
        return {"status": "ok" if outcome else "fail"}

    async def readyz():
        outcome = True if readiness is None else await _probe(readiness)
        if isinstance(outcome, dict):
            return outcome
        return {"ready": bool(outcome)}

    app.add_api_route("/healthz", healthz, methods=["GET"], include_in_schema=False)
    app.add_api_route("/readyz", readyz, methods=["GET"], include_in_schema=False)
