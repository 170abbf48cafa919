from typing import Any, Optional


class TrackerError(Exception):
    """
    Base error for request handling.
    Carries the HTTP status the API layer should answer with.
    """

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.body = body

    def to_envelope(self) -> dict:
        out = {"ok": False, "error": self.message}
        if self.body is not None:
            out["body"] = self.body
        return out


class AuthError(TrackerError):
    status_code = 401


class ForbiddenError(TrackerError):
    status_code = 403


class ValidationError(TrackerError):
    status_code = 400


class UpstreamError(TrackerError):
    status_code = 502


class StoreError(TrackerError):
    status_code = 500
