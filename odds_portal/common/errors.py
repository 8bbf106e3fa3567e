"""Exception types shared across the scraping pipeline."""
from __future__ import annotations

from typing import Optional


class OddsPortalError(Exception):
    pass


class UnsupportedInputError(OddsPortalError, ValueError):
    """Unknown league, odds format or year range. Never retried."""


class SessionError(OddsPortalError):
    pass


class RetryExhaustedError(OddsPortalError):
    def __init__(self, message: str, *, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class NavigationExhausted(RetryExhaustedError):
    """Navigation kept failing (blocked status or network error) for every attempt."""

    def __init__(self, message: str, *, url: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(message, attempts=attempts, last_error=last_error)
        self.url = url


class TransientStatusError(OddsPortalError):
    """Response status the site uses to signal rate limiting / bot detection."""

    def __init__(self, status: int, url: str):
        super().__init__(f"HTTP {status}")
        self.status = status
        self.url = url


__all__ = [
    "OddsPortalError",
    "UnsupportedInputError",
    "SessionError",
    "RetryExhaustedError",
    "NavigationExhausted",
    "TransientStatusError",
]
