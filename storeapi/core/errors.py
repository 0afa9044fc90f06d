"""
Error taxonomy shared by services and routers.

Every failure that reaches a client is one of the FailureKind members. Each kind
carries a fixed HTTP status and a fixed public message; storage or library
error text is never forwarded.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    DUPLICATE_IDENTITY = (400, "Email already registered")
    INVALID_INPUT = (400, "Invalid input")
    INVALID_CREDENTIALS = (401, "Invalid credentials")
    UNAUTHORIZED = (401, "Authentication required")
    FORBIDDEN = (403, "Insufficient permissions")
    NOT_FOUND = (404, "Resource not found")
    INVALID_OR_EXPIRED_TOKEN = (400, "Invalid or expired reset token")
    INTERNAL_FAILURE = (500, "Internal server error")

    def __init__(self, status: int, message: str):
        self.status = status
        self.default_message = message


class AppError(Exception):
    """Raised by CRUD services/routers; rendered as {message, status} by the app."""

    def __init__(self, kind: FailureKind, message: Optional[str] = None):
        self.kind = kind
        self.status = kind.status
        self.message = message or kind.default_message
        super().__init__(self.message)
