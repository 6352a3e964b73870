"""
OptionsSource – the generative backend behind one narrow contract:

    await source.fetch(request) -> SourceOk(payload) | SourceError(kind, detail)

``fetch`` never raises for upstream problems; every failure path is
classified into a :class:`SourceErrorKind`.  ``payload`` is the parsed but
not yet validated JSON object; validation is the normalizer's job.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

import httpx
import orjson

from core_config import Settings
from core_http import get_http_client, request_with_retry
from core_logging import get_logger, log_stage, record_error
from core_logging.error_codes import ErrorCode
from core_models import NavigationRequest
from core_utils import jsonx
from core_utils.async_timeout import run_with_stage_timeout

from .metrics import navigator_upstream_error
from .prompt import NavigationPrompt, build_prompt

logger = get_logger("navigator.options_source")

# Upstream body excerpts kept in warnings/logs are capped.
DETAIL_MAX_CHARS = 120


class SourceErrorKind(str, Enum):
    no_credential = "no_credential"
    transport_error = "transport_error"
    http_error = "http_error"
    empty_output = "empty_output"
    malformed_json = "malformed_json"


_ERROR_CODES = {
    SourceErrorKind.no_credential: ErrorCode.upstream_no_credential,
    SourceErrorKind.transport_error: ErrorCode.upstream_transport_error,
    SourceErrorKind.http_error: ErrorCode.upstream_http_error,
    SourceErrorKind.empty_output: ErrorCode.upstream_empty_output,
    SourceErrorKind.malformed_json: ErrorCode.upstream_malformed_json,
}


@dataclass(frozen=True)
class SourceOk:
    payload: Dict[str, Any]
    model: str = ""
    prompt_fingerprint: str = ""


@dataclass(frozen=True)
class SourceError:
    kind: SourceErrorKind
    detail: str = ""
    status: Optional[int] = None

    @property
    def error_code(self) -> ErrorCode:
        return _ERROR_CODES[self.kind]

    @property
    def warning(self) -> str:
        """Caller-facing explanation carried into the stub result's warnings."""
        label = f"http_{self.status}" if self.kind is SourceErrorKind.http_error and self.status else self.kind.value
        return f"upstream {label}" + (f": {self.detail}" if self.detail else "")


SourceResult = Union[SourceOk, SourceError]


@runtime_checkable
class OptionsSource(Protocol):
    async def fetch(self, request: NavigationRequest) -> SourceResult: ...


def _excerpt(text: str) -> str:
    return " ".join(text.split())[:DETAIL_MAX_CHARS]


def extract_output_text(data: Any) -> str:
    """
    Text of a Responses API body: ``output_text`` when present, otherwise the
    concatenated ``output[].content[].text`` parts.
    """
    if not isinstance(data, dict):
        return ""
    direct = data.get("output_text")
    if isinstance(direct, str) and direct.strip():
        return direct
    output = data.get("output")
    if not isinstance(output, list):
        return ""
    parts = []
    for item in output:
        content_list = item.get("content") if isinstance(item, dict) else None
        if not isinstance(content_list, list):
            continue
        for content in content_list:
            if isinstance(content, dict) and isinstance(content.get("text"), str):
                parts.append(content["text"])
    return "".join(parts)


class OpenAIOptionsSource:
    """
    OptionsSource backed by the OpenAI Responses API (``POST {base}/responses``,
    JSON-object output format).  An injected ``client`` is used as-is; otherwise
    the process-wide shared client is borrowed per call.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        temperature: float = 0.2,
        retries: int = 1,
        timeout_ms: int = 20000,
        client: Optional[httpx.AsyncClient] = None,
        connect_timeout: Optional[float] = None,
        max_connections: int = 100,
        max_keepalive: int = 20,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.url = base_url.rstrip("/") + "/responses"
        self.temperature = temperature
        self.retries = max(0, int(retries))
        self.timeout_ms = int(timeout_ms)
        self._client = client
        self._connect_timeout = connect_timeout
        self._pool = {"max_connections": int(max_connections), "max_keepalive": int(max_keepalive)}

    @classmethod
    def from_settings(cls, settings: Settings, *, client: Optional[httpx.AsyncClient] = None) -> "OpenAIOptionsSource":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            temperature=settings.llm_temperature,
            retries=settings.llm_retries,
            timeout_ms=settings.timeout_llm_ms,
            client=client,
            connect_timeout=settings.http_connect_timeout,
            max_connections=settings.http_max_connections,
            max_keepalive=settings.http_max_keepalive,
        )

    def _http(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return get_http_client(timeout_ms=self.timeout_ms, connect_timeout=self._connect_timeout, **self._pool)

    def _body(self, prompt: NavigationPrompt) -> Dict[str, Any]:
        return {
            "model": self.model,
            "input": prompt.text,
            "temperature": self.temperature,
            "text": {"format": {"type": "json_object"}},
        }

    def _fail(self, error: SourceError, request: NavigationRequest, prompt_fp: str) -> SourceError:
        navigator_upstream_error(error.kind.value)
        record_error(
            error.error_code.value,
            where="options_source.fetch",
            message=error.detail or error.kind.value,
            logger=logger,
            level="WARNING",
            stage="llm",
            status_code=error.status,
            domain=request.domain,
            depth=request.depth,
            prompt_fingerprint=prompt_fp,
        )
        return error

    async def fetch(self, request: NavigationRequest) -> SourceResult:
        prompt = build_prompt(request)
        fp = prompt.fingerprint
        if not self.api_key:
            return self._fail(SourceError(SourceErrorKind.no_credential, "OPENAI_API_KEY not configured"), request, fp)

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        t0 = time.perf_counter()
        try:
            resp = await run_with_stage_timeout(
                "llm",
                request_with_retry(self._http(), "POST", self.url, json=self._body(prompt),
                                   headers=headers, retry=self.retries),
                logger,
                timeout_s=self.timeout_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            return self._fail(SourceError(SourceErrorKind.transport_error, "timeout"), request, fp)
        except httpx.HTTPError as exc:
            return self._fail(SourceError(SourceErrorKind.transport_error, type(exc).__name__), request, fp)

        latency_ms = int((time.perf_counter() - t0) * 1000)
        if resp.status_code >= 400:
            return self._fail(
                SourceError(SourceErrorKind.http_error, _excerpt(resp.text), status=resp.status_code),
                request, fp,
            )

        try:
            text = extract_output_text(jsonx.loads(resp.content))
        except orjson.JSONDecodeError:
            # Not a Responses envelope; treat the raw body as the model text.
            text = resp.text
        if not text.strip():
            return self._fail(SourceError(SourceErrorKind.empty_output, "no output text"), request, fp)

        payload = jsonx.extract_json_object(text)
        if payload is None:
            return self._fail(SourceError(SourceErrorKind.malformed_json, _excerpt(text)), request, fp)

        options = payload.get("options")
        log_stage(logger, "llm", "llm.fetch.ok",
                  model=self.model, latency_ms=latency_ms, prompt_fingerprint=fp,
                  option_count=len(options) if isinstance(options, list) else None)
        return SourceOk(payload=payload, model=self.model, prompt_fingerprint=fp)
