from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from blogapi.errors import AuthError
from blogapi.logging import get_logger

logger = get_logger("api")

STATUS_BY_KIND = {
    "validation": 400,
    "conflict": 409,
    "not_found": 404,
    "invalid_credentials": 401,
    "locked": 423,
    "invalid_code": 400,
    "already_verified": 400,
    "invalid_token": 401,
    "expired_token": 401,
    "forbidden": 403,
    "rate_limited": 429,
    "upstream_unavailable": 503,
}


def error_response(status_code: int, kind: str, message: str, errors: list[str] | None = None) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": kind, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        # expired and malformed tokens look the same to clients
        kind = "invalid_token" if exc.kind == "expired_token" else exc.kind
        status_code = STATUS_BY_KIND[exc.kind]
        log_fn = logger.error if status_code >= 500 else logger.info
        log_fn("auth error %s on %s %s", exc.code, request.method, request.url.path)
        return error_response(status_code, kind, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        messages = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
        return error_response(400, "validation", "Validation failed", messages)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception("unhandled exception on %s %s", request.method, request.url.path)
        return error_response(500, "server_error", "Internal server error")
