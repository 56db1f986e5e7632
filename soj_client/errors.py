"""
Errors raised by the request pipeline. Transport errors from httpx (timeouts, connection
failures, non-401 HTTP status) are not wrapped; they reach the caller unchanged.
"""


class ApiError(Exception):
    """Base for failures the pipeline raises itself."""


class EnvelopeError(ApiError):
    """Response body is not a {code, data, message} JSON envelope."""


class ApplicationError(ApiError):
    """Envelope code other than success and unauthorized; carries the server message."""

    def __init__(self, code: int, message: str, data=None):
        super().__init__(message or "Request failed")
        self.code = code
        self.message = message or "Request failed"
        self.data = data


class AuthorizationError(ApiError):
    """Terminal authorization failure: still unauthorized after one refresh-and-retry."""


class RefreshError(AuthorizationError):
    """Refresh failed (no refresh token, rejected, transport error or timeout). The session is terminated."""
