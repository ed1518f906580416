"""Translate domain exceptions into JSON error responses"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from finflow.api.dependencies import get_request_id
from finflow.domain.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from finflow.infrastructure.observability.metrics import api_error_counter

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> JSONResponse:
    body: Dict[str, Any] = {"message": message}
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path"):
        parts = parts[1:]
    return ".".join(parts) or "body"


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    api_error_counter.labels(category="authentication").inc()
    logger.info("Unauthenticated request", extra={"request_id": get_request_id(request), "path": request.url.path})
    return _error_response(401, "Unauthorized")


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    api_error_counter.labels(category="validation").inc()
    logger.warning(f"Validation failed: {exc}", extra={"request_id": get_request_id(request), "errors": exc.errors})
    return _error_response(400, str(exc), exc.errors)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/query shape errors: 400 with one entry per offending field"""
    api_error_counter.labels(category="validation").inc()
    errors = [{"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")} for err in exc.errors()]
    logger.warning("Invalid input", extra={"request_id": get_request_id(request), "errors": errors})
    return _error_response(400, "Invalid input", errors)


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    api_error_counter.labels(category="not_found").inc()
    logger.info(f"Not found: {exc}", extra={"request_id": get_request_id(request)})
    return _error_response(404, str(exc))


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    api_error_counter.labels(category="conflict").inc()
    logger.warning(f"Conflict: {exc}", extra={"request_id": get_request_id(request)})
    return _error_response(409, str(exc))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    api_error_counter.labels(category="internal").inc()
    logger.error(f"Unexpected error: {exc}", exc_info=exc, extra={"request_id": get_request_id(request)})
    return _error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
