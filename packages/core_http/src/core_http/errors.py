from __future__ import annotations
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
from core_logging import get_logger, log_stage, current_request_id, record_error
from core_logging.error_codes import ErrorCode  # reuse codes; do not duplicate
from core_models.errors import InputError
from core_utils.ids import generate_request_id


def error_envelope(code: ErrorCode | str, message: str, request_id: str | None) -> dict:
    """Flat 4xx/5xx body: ``{error, code, request_id}``."""
    return {"error": message, "code": str(getattr(code, "value", code)), "request_id": request_id}


def _request_id(request: Request) -> str:
    return (getattr(request.state, "request_id", None)
            or current_request_id()
            or generate_request_id())


def attach_standard_error_handlers(app: FastAPI, *, service: str) -> None:
    """
    Uniform error shaping across routes:
      - 400: InputError (bad domain / malformed body)
      - Starlette HTTP errors (JSON passthrough)
      - 500: Catch-all with {error, code, request_id}
    """
    logger = get_logger(service)

    @app.exception_handler(InputError)
    async def _input_exc_handler(request: Request, exc: InputError):
        req_id = _request_id(request)
        log_stage(logger, "request", "input_rejected",
                  request_id=req_id, error_code=exc.code.value, reason=exc.message,
                  path=str(request.url.path))
        return JSONResponse(status_code=400, content=error_envelope(exc.code, exc.message, req_id))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": ErrorCode.not_found.value})
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def _unhandled_exc_handler(request: Request, exc: Exception):
        req_id = _request_id(request)
        record_error(ErrorCode.internal.value, where="http.route", message=str(exc),
                     logger=logger, request_id=req_id, error_type=exc.__class__.__name__)
        return JSONResponse(
            status_code=500,
            content=error_envelope(ErrorCode.internal, "Unexpected error", req_id),
        )
