from __future__ import annotations

import logging
from typing import Any, Dict, Tuple, Type, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.pvz_api.api.schemas import ErrorResponse
from app.pvz_api.services.errors import (
    AlreadyExistsError,
    ConflictError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
    PVZServiceError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "Внутренняя ошибка сервера"
BAD_REQUEST_MESSAGE = "Некорректные данные"

ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}

# Порядок важен: первый подходящий класс определяет код ответа
STATUS_BY_KIND: Tuple[Tuple[Type[PVZServiceError], int], ...] = (
    (NotFoundError, status.HTTP_400_BAD_REQUEST),
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_400_BAD_REQUEST),
    (PreconditionFailedError, status.HTTP_400_BAD_REQUEST),
    (AlreadyExistsError, status.HTTP_400_BAD_REQUEST),
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: PVZServiceError) -> int:
    for kind, code in STATUS_BY_KIND:
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def service_error_handler(request: Request, exc: PVZServiceError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        message = INTERNAL_MESSAGE
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {type(exc).__name__}")
        message = exc.message
    return JSONResponse(status_code=code, content={"message": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} invalid request: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": BAD_REQUEST_MESSAGE},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PVZServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
