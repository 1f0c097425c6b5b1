"""
Exception classes for the proxycheck client.

All exceptions inherit from ProxyCheckError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class ProxyCheckError(Exception):
    """Base exception for all proxycheck client errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ProxyCheckError):
    """Raised for malformed subjects and out-of-range parameters."""

    pass


class NetworkError(ProxyCheckError):
    """Raised when the transport cannot complete a request."""

    pass


class HttpError(ProxyCheckError):
    """Raised when the upstream answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(
            code="http_error",
            message=message or f"HTTP request failed with status code: {status_code}",
            details={"status_code": status_code, **(details or {})},
        )


class DecodeError(ProxyCheckError):
    """Raised when a response body is not valid JSON."""

    pass


class ApiError(ProxyCheckError):
    """Raised when the upstream reports status "error"."""

    pass


class MalformedResponseError(ProxyCheckError):
    """Raised when the checked subject cannot be identified in a response."""

    pass


class MissingApiKeyError(ProxyCheckError):
    """Raised when a dashboard call is made without an API key."""

    pass


class AccessDeniedError(ProxyCheckError):
    """Raised when dashboard API access is not enabled for the account."""

    pass


class CacheError(ProxyCheckError):
    """Raised by cache stores when the backend fails."""

    pass


class TamperingError(CacheError):
    """Raised when HMAC validation of a cache file fails."""

    pass
