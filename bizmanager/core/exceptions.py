"""Custom exception hierarchy for the business manager backend."""

from __future__ import annotations

from typing import List, Optional

from fastapi import status


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "application_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ValidationError(ApplicationError):
    """Malformed or missing input. Carries every violation found, not just the first."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"

    def __init__(self, message: str = "Validation failed", *, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [message])


class ConflictError(ApplicationError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class UnauthorizedError(ApplicationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class ForbiddenError(ApplicationError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class InvalidTokenError(ApplicationError):
    """Password-reset token is unknown, expired or already used."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_token"

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class RateLimitedError(ApplicationError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"

    def __init__(self, message: str = "Too many attempts. Please try again later.", *, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after
