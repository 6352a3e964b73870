from __future__ import annotations
import time
from typing import Iterable
from fastapi import FastAPI, Request
from core_logging import get_logger, log_stage, bind_request_id
from core_utils.ids import generate_request_id
import core_metrics

_QUIET_SUFFIXES = ("/health", "/healthz", "/ready", "/readyz", "/metrics")
REQUEST_ID_HEADER = "x-request-id"


def attach_request_logging(
    app: FastAPI,
    *,
    service: str,
    metric_prefix: str,
    suppress_paths: Iterable[str] = _QUIET_SUFFIXES,
) -> None:
    """Bind a request id per call, log the exchange, record latency and status counts.

    Probe and scrape paths still count toward metrics but produce no log lines.
    """
    logger = get_logger(service)
    quiet = tuple(suppress_paths)
    latency_metric = f"{metric_prefix}_ttfb_seconds"
    count_metric = f"{metric_prefix}_http_requests_total"

    @app.middleware("http")
    async def _bind_and_log(request: Request, call_next):
        target = request.url.path or ""
        verbose = not target.endswith(quiet)
        rid = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        bind_request_id(rid)
        request.state.request_id = rid
        if verbose:
            log_stage(logger, "http.server", "http.server.request", request_id=rid,
                      http={"method": request.method, "target": target})

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        response.headers[REQUEST_ID_HEADER] = rid

        core_metrics.histogram(latency_metric, elapsed)
        core_metrics.counter(count_metric, 1, method=request.method, code=str(response.status_code))
        if verbose:
            log_stage(logger, "http.server", "http.server.response", request_id=rid,
                      http={"method": request.method, "target": target,
                            "status_code": response.status_code},
                      latency_ms=int(elapsed * 1000.0))
        return response
