# school_portal/core/exceptions.py
"""Custom exceptions for the school portal."""
from typing import Any, Dict, Optional


class PortalException(Exception):
    """Base exception for the portal; rendered as {"error": message, **payload}."""
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        payload: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(self.message)


class ValidationException(PortalException):
    """Validation error exception"""
    def __init__(self, message: str):
        super().__init__(message, 400)


class AuthenticationError(PortalException):
    """Raised when a request carries no valid session."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, 401)


class PermissionDenied(PortalException):
    """Raised when the session role or ownership does not allow the action."""
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, 403)


class NotFoundError(PortalException):
    """Resource not found exception"""
    def __init__(self, resource: str, id: Any = None):
        message = f"{resource} not found"
        if id:
            message += f" with id: {id}"
        super().__init__(message, 404)


class ConflictError(PortalException):
    """Raised when a write would clash with existing rows."""
    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message, 409, payload)
