from __future__ import annotations

from typing import Any, Dict, List, Optional


# PUBLIC_INTERFACE
class AppError(Exception):
    """
    Base class for error kinds the API reports to clients.

    Each subclass fixes the HTTP status code and the stable ``error`` name that
    appears in the JSON body. Handlers raise these; the exception handlers in
    ``main`` are the only place they are turned into responses.
    """

    status_code: int = 500
    error: str = "InternalError"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(AppError):
    """Malformed or out-of-range input. Carries per-field issues."""

    status_code = 400
    error = "ValidationError"
    default_message = "Validation error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors: List[Dict[str, Any]] = list(errors or [])

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["errors"] = self.errors
        return body


class UnauthorizedError(AppError):
    status_code = 401
    error = "Unauthorized"
    default_message = "Unauthorized"


class NotFoundError(AppError):
    status_code = 404
    error = "NotFound"
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    error = "Conflict"
    default_message = "Conflict"


class InternalError(AppError):
    pass
