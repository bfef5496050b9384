# hospitalms/core/errors.py
"""
Service-level error taxonomy.

Services raise these; ``hospitalms.main`` maps every ``AppError`` to a JSON
response of the form ``{"error": code, "message": message, **extra}``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from starlette import status


class AppError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        body.update(self.extra)
        return body


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "validation_error"


class AuthorizationError(AppError):
    """Role or ownership mismatch."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class ConflictError(AppError):
    """Uniqueness or scheduling conflict."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "internal_error"


__all__ = [
    "AppError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
