"""Typed errors for callable functions.

Each error carries the callable status code the client SDKs understand
(``INVALID_ARGUMENT``, ``PERMISSION_DENIED`` ...) next to the HTTP status it
is transported with. The API layer renders them as
``{"error": {"status": ..., "message": ...}}``.
"""

from __future__ import annotations

from fastapi import HTTPException


class CallableError(HTTPException):
    status: str = "INTERNAL"
    kind: str = "internal"
    http_status: int = 500

    def __init__(self, message: str):
        super().__init__(status_code=self.http_status, detail=message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"

    def to_body(self) -> dict[str, dict[str, str]]:
        return {"error": {"status": self.status, "message": self.message}}


class InvalidArgument(CallableError):
    status = "INVALID_ARGUMENT"
    kind = "invalid-argument"
    http_status = 400


class Unauthenticated(CallableError):
    status = "UNAUTHENTICATED"
    kind = "unauthenticated"
    http_status = 401


class PermissionDenied(CallableError):
    status = "PERMISSION_DENIED"
    kind = "permission-denied"
    http_status = 403


class Internal(CallableError):
    status = "INTERNAL"
    kind = "internal"
    http_status = 500
