from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import orjson

from core_config import Settings, get_settings
from core_config.constants import SERVICE_VERSION
from core_http import aclose_http_client, attach_standard_error_handlers
from core_logging import get_logger, log_once_process
from core_logging.error_codes import ErrorCode
from core_logging.request_logging import attach_request_logging
from core_metrics.fastapi import attach_prometheus_endpoint
from core_models import InvalidRequest
from core_utils import jsonx
from core_utils.health import attach_health_routes

from .orchestrator import Orchestrator, build_orchestrator

logger = get_logger("navigator")

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def _parse_body(body: bytes) -> object:
    if not body.strip():
        return {}
    try:
        return jsonx.loads(body)
    except orjson.JSONDecodeError as exc:
        raise InvalidRequest("request body is not valid JSON") from exc


def create_app(
    *,
    settings: Optional[Settings] = None,
    orchestrator: Optional[Orchestrator] = None,
) -> FastAPI:
    settings = settings or get_settings()
    orchestrator = orchestrator or build_orchestrator(settings)
    allow_origin = settings.cors_allow_origin
    cors_headers = {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        log_once_process(logger, "navigator.startup", event="startup",
                         build=SERVICE_VERSION, environment=settings.environment,
                         model=settings.openai_model, credential_configured=settings.has_credential)
        yield
        await aclose_http_client()

    app = FastAPI(title="Navigator", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.orchestrator = orchestrator

    attach_standard_error_handlers(app, service="navigator")
    attach_request_logging(app, service="navigator", metric_prefix="navigator")

    @app.middleware("http")
    async def _cors(request: Request, call_next):
        resp = await call_next(request)
        resp.headers.setdefault("Access-Control-Allow-Origin", allow_origin)
        return resp

    async def next_options(request: Request) -> JSONResponse:
        raw = _parse_body(await request.body())
        result = await orchestrator.resolve(raw)
        return JSONResponse(result.model_dump(mode="json"))

    app.add_api_route("/next-options", next_options, methods=["POST"])
    app.add_api_route("/{prefix:path}/next-options", next_options, methods=["POST"])

    def _readiness() -> dict:
        return {"ready": True, "credential_configured": settings.has_credential,
                "cache_entries": len(orchestrator.cache), "cache_stats": orchestrator.cache.stats.as_dict(),
                "build": SERVICE_VERSION}

    attach_health_routes(app, readiness=_readiness)
    attach_prometheus_endpoint(app)

    @app.options("/{full_path:path}", include_in_schema=False)
    async def _preflight(full_path: str) -> Response:
        return Response(status_code=204, headers=cors_headers)

    @app.api_route("/{full_path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def _not_found(full_path: str) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": ErrorCode.not_found.value})

    return app


app = create_app()
