"""
Error taxonomy for the short-link registry.

Every failure the registry or resolver can report is a subclass of
`ShortLinkError`. Each kind carries:
    - `kind`: stable machine-readable identifier clients can branch on
    - `status_code`: the HTTP status the API layer renders it with

Message text is informational only; clients should switch on `kind`.

LLM Prompt Example:
    "Show how a small exception hierarchy with stable kinds lets an API layer
    map domain errors to HTTP responses with a single exception handler."
"""

from typing import Any, Dict, Optional


class ShortLinkError(Exception):
    """Base class for all registry/resolver errors."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message}


class Unauthorized(ShortLinkError):
    kind = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidInput(ShortLinkError, ValueError):
    """Malformed request data; `field` names the offending input."""

    kind = "invalid_input"
    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"{field} is invalid")
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


class NotFound(ShortLinkError):
    kind = "not_found"
    status_code = 404

    def __init__(self, message: str = "Short link not found"):
        super().__init__(message)


class Expired(ShortLinkError):
    kind = "expired"
    status_code = 410

    def __init__(self, message: str = "Short link expired"):
        super().__init__(message)


class CodeAlreadyExists(ShortLinkError):
    kind = "code_already_exists"
    status_code = 409

    def __init__(self, code: str):
        super().__init__(f"Code {code!r} already exists")
        self.code = code


class CodeExhausted(ShortLinkError):
    kind = "code_exhausted"
    status_code = 503

    def __init__(self, attempts: int):
        super().__init__(f"Could not generate a unique code after {attempts} attempts")
        self.attempts = attempts


class StorageFailure(ShortLinkError):
    kind = "storage_failure"
    status_code = 500

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message)


__all__ = [
    "ShortLinkError",
    "Unauthorized",
    "InvalidInput",
    "NotFound",
    "Expired",
    "CodeAlreadyExists",
    "CodeExhausted",
    "StorageFailure",
]
