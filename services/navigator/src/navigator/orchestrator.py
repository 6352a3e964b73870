"""
Per-request sequencing:

    SANITIZE → CACHE_LOOKUP → HIT: respond
                            → MISS: RESOLVE_OR_JOIN → NORMALIZE | FALLBACK → STORE → respond

Only sanitization may fail the request (``InputError``, raised before the
cache is touched).  Everything after it is absorbed into a structurally
valid result; upstream failures and unusable payloads become stub results.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Optional

import httpx

from core_cache import CacheCoordinator, options_key
from core_config import Settings, get_settings
from core_config.constants import SERVICE_VERSION
from core_logging import get_logger, log_stage, record_error, current_request_id
from core_logging.error_codes import ErrorCode
from core_models import NavigationRequest, OptionsResult, ResultMeta, StepInfo

from .fallback import build_stub_result
from .metrics import navigator_fallback, navigator_requests, navigator_resolve_latency_ms
from .normalizer import Invalid, normalize, summarize
from .options_source import OpenAIOptionsSource, OptionsSource, SourceError
from .sanitizer import sanitize_request

logger = get_logger("navigator.orchestrator")


class Orchestrator:
    def __init__(
        self,
        source: OptionsSource,
        cache: CacheCoordinator[OptionsResult],
        *,
        build: str = SERVICE_VERSION,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.source = source
        self.cache = cache
        self.build = build
        self._timer = timer

    async def produce(self, request: NavigationRequest) -> OptionsResult:
        """Fetch → normalize, or fall back.  Never raises for upstream or payload problems."""
        try:
            outcome = await self.source.fetch(request)
            if isinstance(outcome, SourceError):
                navigator_fallback(outcome.kind.value)
                return build_stub_result(request, [outcome.warning])

            verdict = normalize(outcome.payload, request)
            log_stage(logger, "normalize", "normalize.verdict", **summarize(verdict))
            if isinstance(verdict, Invalid):
                record_error(
                    ErrorCode.normalization_rejected.value,
                    where="orchestrator.produce",
                    message="; ".join(verdict.reasons),
                    logger=logger,
                    level="WARNING",
                    stage="normalize",
                )
                navigator_fallback("normalization_rejected")
                return build_stub_result(
                    request, [f"upstream output rejected: {'; '.join(verdict.reasons)}"]
                )
            return verdict.result
        except Exception as exc:
            record_error(
                ErrorCode.internal.value,
                where="orchestrator.produce",
                message=str(exc),
                logger=logger,
                stage="resolve",
                error_type=exc.__class__.__name__,
            )
            navigator_fallback("internal")
            return build_stub_result(request, ["internal error"])

    async def resolve(self, raw: Any) -> OptionsResult:
        """Resolve one raw request body; raises ``InputError`` for unusable input."""
        t0 = self._timer()
        request = sanitize_request(raw)
        key = options_key(request)
        result, cache_hit = await self.cache.get_or_resolve(key, lambda: self.produce(request))

        latency_ms = int((self._timer() - t0) * 1000)
        navigator_requests(result.mode, "hit" if cache_hit else "miss")
        navigator_resolve_latency_ms(latency_ms)
        log_stage(logger, "resolve", "resolve.done",
                  mode=result.mode, cache_hit=cache_hit, domain=request.domain,
                  depth=request.depth, returned_count=len(result.options), latency_ms=latency_ms)
        return result.with_meta(ResultMeta(
            cache_hit=cache_hit,
            requested_max=request.max_options,
            returned_count=len(result.options),
            latency_ms=latency_ms,
            build=self.build,
            request_id=current_request_id(),
        ), step=StepInfo(level0=request.domain, path_labels=request.path_labels))


def build_cache(settings: Settings, *, clock: Optional[Callable[[], float]] = None) -> CacheCoordinator[OptionsResult]:
    """Options cache; stub results expire on the shorter stub TTL."""
    stub_ttl = settings.stub_cache_ttl_sec
    kwargs = {"clock": clock} if clock is not None else {}
    return CacheCoordinator(
        ttl_sec=settings.cache_ttl_sec,
        max_entries=settings.cache_max_entries,
        namespace="options",
        ttl_for=lambda r: stub_ttl if r.mode == "stub" else settings.cache_ttl_sec,
        **kwargs,
    )


def build_orchestrator(
    settings: Optional[Settings] = None,
    *,
    source: Optional[OptionsSource] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Orchestrator:
    settings = settings or get_settings()
    source = source or OpenAIOptionsSource.from_settings(settings, client=client)
    return Orchestrator(source, build_cache(settings))
