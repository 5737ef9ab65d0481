"""Tradução de erros do motor para respostas HTTP.

O status vem do `kind` estável do erro, nunca de parse de mensagem.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from api.routes.scheduling.dependencies import UnauthenticatedError
from app.domain.errors import ErrorKind, SchedulingError
from config.logging import log_infrastructure_failure
from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.SLOT_CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CANCELLATION_WINDOW_EXPIRED: 409,
    ErrorKind.CANCELLATION_DISALLOWED: 403,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.BOOKING_WINDOW_VIOLATION: 400,
    ErrorKind.OUTSIDE_AVAILABILITY: 400,
    ErrorKind.DAILY_LIMIT_REACHED: 409,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.CONCURRENT_UPDATE: 409,
}

STORAGE_UNAVAILABLE = "storage_unavailable"


def _validation_payload(errors: list[Any]) -> dict[str, Any]:
    fields = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
        }
        for error in errors
    ]
    return {
        "error": ErrorKind.VALIDATION_ERROR.value,
        "message": "Requisição inválida",
        "details": {"fields": fields},
    }


async def _scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.kind, 400)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def _infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    log_infrastructure_failure(logger, "http", type(exc).__name__, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"error": STORAGE_UNAVAILABLE, "message": "Armazenamento indisponível"},
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError | PydanticValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content=_validation_payload(list(exc.errors())))


async def _unauthenticated_handler(request: Request, exc: UnauthenticatedError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": "unauthenticated", "message": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registra os handlers de erro do motor no app."""
    app.add_exception_handler(SchedulingError, _scheduling_error_handler)
    app.add_exception_handler(InfrastructureError, _infrastructure_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(PydanticValidationError, _request_validation_handler)
    app.add_exception_handler(UnauthenticatedError, _unauthenticated_handler)
