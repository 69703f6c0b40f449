"""
Maps ``AuthError`` kinds to HTTP responses.

The auth core only guarantees a stable kind per failure cause; the
status code chosen for each kind lives here.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.errors import AuthError, ErrorKind
from app.schemas import ErrorResponse

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.SESSION_NOT_EXISTS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def status_for(exc: AuthError) -> int:
    if exc.is_validation_error:
        return status.HTTP_401_UNAUTHORIZED
    return _STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=code,
        content=ErrorResponse(error=str(exc), kind=exc.kind.value).model_dump(),
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
