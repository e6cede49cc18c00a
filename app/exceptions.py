"""
Помилки застосунку та їх перетворення у JSON-відповіді
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Базова помилка з HTTP статусом та коротким заголовком"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal server error"

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error


class ValidationError(AppError):
    """Відсутнє або некоректне обов'язкове поле"""
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Missing required field"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class ExternalServiceError(AppError):
    """Push-провайдер не прийняв повідомлення"""
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Failed to send notification"


class StoreError(AppError):
    """Помилка операції з базою даних"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal server error"


def error_body(error: str, message: str) -> dict:
    return {"success": False, "error": error, "message": message}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Помилки pydantic віддаємо як 400 у тому ж форматі"""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append(f"{'.'.join(loc) or 'request'}: {err.get('msg')}")

    message = "; ".join(fields) or "Invalid request"
    logger.warning("%s %s validation failed: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", message),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "Unexpected server error"),
    )
