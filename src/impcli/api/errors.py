"""Error types raised by the build API client.

Each failure is mapped to one subclass of ImpApiError so callers can
branch on the kind of failure rather than on status codes.
"""

from __future__ import annotations


class ImpApiError(Exception):
    """Base class for build API failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class AuthenticationError(ImpApiError):
    """The API key was rejected."""


class NotFoundError(ImpApiError):
    """The requested model, device, or revision does not exist."""


class ClientRequestError(ImpApiError):
    """The server rejected the request as malformed (other 4xx)."""


class RemoteCallError(ImpApiError):
    """Network failure, server error, or unreadable response."""
