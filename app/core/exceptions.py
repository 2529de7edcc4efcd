"""
Application error taxonomy.

Every layer raises one of these; the HTTP boundary in ``app.main`` turns them into
the ``{code, message, data}`` envelope with a matching HTTP status.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    @property
    def code(self) -> int:
        return self.status_code


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request parameters"


class ConflictError(AppError):
    # Duplicate unique fields are reported as 400, not 409
    status_code = 400
    default_message = "Resource already exists"


class AuthError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidToken(AuthError):
    default_message = "Invalid token"


class ExpiredToken(AuthError):
    default_message = "Token has expired"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class RateLimitError(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later"


class ServerError(AppError):
    status_code = 500
    default_message = "Internal server error"
