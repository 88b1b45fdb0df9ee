"""
Error types for FlagCat SDK.

Two families live here: transport errors raised while fetching the
configuration, and parser errors raised while turning a settings map
into typed values.
"""

from enum import Enum
from typing import Optional

import httpx


class ErrorCategory(str, Enum):
    """Categories of errors for classification."""

    AUTH = "auth"
    NETWORK = "network"
    INTERNAL = "internal"
    USAGE = "usage"
    RESOLUTION = "resolution"
    UNKNOWN = "unknown"


class FlagCatError(Exception):
    """Base exception for all FlagCat SDK errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.status_code = status_code
        self.retryable = retryable

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, category={self.category})"


class AuthenticationError(FlagCatError):
    """Raised when the CDN rejects the SDK key (401/403/404)."""

    def __init__(self, message: str = "Invalid SDK key", status_code: int = 403):
        super().__init__(
            message,
            category=ErrorCategory.AUTH,
            status_code=status_code,
            retryable=False,
        )


class NetworkError(FlagCatError):
    """Raised when a network error or timeout occurs."""

    def __init__(self, message: str = "Network error"):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            status_code=None,
            retryable=True,
        )


class InternalError(FlagCatError):
    """Raised when server error occurs (5xx)."""

    def __init__(self, message: str = "Internal server error", status_code: int = 500):
        super().__init__(
            message,
            category=ErrorCategory.INTERNAL,
            status_code=status_code,
            retryable=True,
        )


class ParserError(FlagCatError):
    """Base class for errors raised by the config parser."""


class InvalidRequestedTypeError(ParserError):
    """The caller asked for a value type the parser cannot produce."""

    def __init__(self, message: str = "Only str, int, float, bool or Any types can be parsed."):
        super().__init__(message, category=ErrorCategory.USAGE)


class ParseFailureError(ParserError):
    """A key or variation id could not be resolved from the settings."""

    def __init__(self, message: str = "Parse failure"):
        super().__init__(message, category=ErrorCategory.RESOLUTION)


def classify_error(error: Exception, status_code: Optional[int] = None) -> FlagCatError:
    """
    Classify an exception raised during a fetch into a FlagCatError.

    Args:
        error: The original exception
        status_code: Optional HTTP status code

    Returns:
        A classified FlagCatError
    """
    if isinstance(error, FlagCatError):
        return error

    message = str(error) or error.__class__.__name__

    if isinstance(error, (httpx.TimeoutException, httpx.TransportError)):
        return NetworkError(message)

    if status_code:
        if status_code in (401, 403, 404):
            return AuthenticationError(message, status_code)
        if 500 <= status_code < 600:
            return InternalError(message, status_code)
        return FlagCatError(message, status_code=status_code)

    return FlagCatError(message)
