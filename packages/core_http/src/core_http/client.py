import time
from typing import Any, Dict, Iterable, Optional
import httpx
from core_config.constants import timeout_for_stage, HTTP_RETRY_BASE_MS, HTTP_RETRY_JITTER_MS
from core_logging import get_logger, log_stage
from core_logging import current_request_id
from urllib.parse import urlsplit
from core_utils.backoff import async_backoff_sleep

# Module-level logger for this package
logger = get_logger("core_http")

_shared_client: httpx.AsyncClient | None = None

RETRYABLE_STATUS: frozenset[int] = frozenset({429, 500, 502, 503, 504})

def _inject_headers(headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Merge caller headers with process context (request-id).
    Never mutates the input dict.
    """
    base: Dict[str, str] = {}
    rid = current_request_id()
    if rid:
        base["x-request-id"] = rid
    if headers:
        base.update(headers)
    return base

def _build_timeout(seconds: float, connect: Optional[float] = None) -> httpx.Timeout:
    # Separate connect/read/write/pool timeouts; read dominates
    connect = connect if connect is not None else min(2.0, max(0.1, seconds * 0.3))
    read    = max(0.1, seconds)
    write   = min(seconds, 5.0)
    pool    = min(seconds, 5.0)
    return httpx.Timeout(connect=connect, read=read, write=write, pool=pool)

def get_http_client(*, timeout_ms: Optional[int] = None,
                    connect_timeout: Optional[float] = None,
                    max_connections: int = 100,
                    max_keepalive: int = 20) -> httpx.AsyncClient:
    """
    Return a process-wide ``httpx.AsyncClient``.  The returned client is
    shared across the process and **must not be closed** by callers; use
    :func:`aclose_http_client` from the application lifespan instead.  If the
    shared client has been closed, a new client is created on demand.

    A ``timeout_ms`` larger than the current read timeout widens the client's
    timeout configuration; lower values do not shrink it.
    """
    global _shared_client
    base_sec = (timeout_ms / 1000.0) if timeout_ms is not None else timeout_for_stage("llm")
    if _shared_client is None or _shared_client.is_closed:
        if _shared_client is not None:
            log_stage(
                logger, "http.client", "recreating_shared_client",
                timeout_sec=base_sec, request_id=(current_request_id() or "startup")
            )
        _shared_client = httpx.AsyncClient(
            timeout=_build_timeout(base_sec, connect_timeout),
            limits=httpx.Limits(max_connections=max_connections,
                                max_keepalive_connections=max_keepalive),
        )
        return _shared_client
    current_read = float(_shared_client.timeout.read or 0.0)
    if base_sec > current_read:
        _shared_client.timeout = _build_timeout(base_sec, connect_timeout)
    return _shared_client

async def aclose_http_client() -> None:
    global _shared_client
    if _shared_client is not None and not _shared_client.is_closed:
        await _shared_client.aclose()
    _shared_client = None

async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    json: Any | None = None,
    headers: Optional[Dict[str, str]] = None,
    retry: int = 0,
    retry_on_status: Iterable[int] = RETRYABLE_STATUS,
) -> httpx.Response:
    """
    Issue one request with bounded retry and return the final response.

    Transport failures (``httpx.TransportError``) and responses whose status is
    in *retry_on_status* are retried up to *retry* times with decorrelated
    backoff.  Any other status is returned to the caller unchanged; the last
    transport failure is re-raised once retries are exhausted.
    """
    hdrs = _inject_headers(headers)
    parts = urlsplit(url)
    op = f"{method.upper()} {(parts.hostname or '')}{parts.path or '/'}"
    retry_on = frozenset(retry_on_status)
    attempts = max(0, int(retry)) + 1
    log_stage(
        logger, "http.client", "http.client.request",
        request_id=current_request_id(), op=op,
        http={"method": method.upper(), "host": parts.hostname or "", "target": parts.path or "/"},
    )
    t0 = time.perf_counter()
    for attempt in range(attempts):
        last = attempt == attempts - 1
        try:
            resp = await client.request(method.upper(), url, json=json, headers=hdrs)
        except httpx.TransportError as exc:
            if last:
                raise
            reason = type(exc).__name__
        else:
            if resp.status_code not in retry_on or last:
                log_stage(
                    logger, "http.client", "http.client.response",
                    request_id=current_request_id(), op=op,
                    http={"method": method.upper(), "status_code": resp.status_code},
                    attempts=attempt + 1,
                    latency_ms=int((time.perf_counter() - t0) * 1000.0),
                )
                return resp
            reason = f"http_{resp.status_code}"
        delay_ms = await async_backoff_sleep(
            attempt + 1,
            base_ms=HTTP_RETRY_BASE_MS,
            jitter_ms=HTTP_RETRY_JITTER_MS,
            mode="decorrelated",
        )
        log_stage(
            logger, "http.client", "http.client.retry_sleep",
            request_id=current_request_id(), op=op,
            attempt=attempt + 1, delay_ms=delay_ms, reason=reason,
        )
    raise AssertionError("unreachable")  # pragma: no cover
