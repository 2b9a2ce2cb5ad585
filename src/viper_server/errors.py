"""Exception types shared by the gateway, the completion clients and the server."""
from __future__ import annotations

from typing import Optional


class ViperError(Exception):
    """Base class for every error raised by this package."""


class RequestValidationFailed(ViperError):
    """A request field is missing or malformed. Maps to HTTP 400."""


class ConfigurationError(ViperError):
    """A live client was requested without a usable API credential."""


class UpstreamError(ViperError):
    """The completion service failed: non-2xx status, transport error or bad body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RateLimitExceeded(ViperError):
    """The caller used up its request allowance for the current window."""

    def __init__(self, message: str, *, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after
