"""
Application errors raised by the service layer.

Every subclass carries the HTTP status it maps to; ``jobboard.main``
registers a single handler that turns them into ``{"detail": message}``.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class InsufficientCreditsError(AppError):
    def __init__(self, required: int, balance: int):
        self.required = required
        self.balance = balance
        super().__init__(
            f"Insufficient credits: {required} required, {balance} available",
            status_code=400,
        )


class PaymentProviderError(AppError):
    """A payment provider rejected a request or could not be reached."""
    def __init__(self, message: str = "Payment provider error"):
        super().__init__(message, status_code=502)


class StorageError(AppError):
    def __init__(self, message: str = "Object storage error"):
        super().__init__(message, status_code=500)


def create_error_response(status_code: int, detail) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return create_error_response(exc.status_code, exc.message)
