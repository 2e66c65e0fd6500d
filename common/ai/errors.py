"""
Typed failures raised by completion providers.

Callers catch CompletionError to contain every provider outage in one
place; the subclasses let the HTTP boundary pick a status code.
"""

from typing import Optional


class CompletionError(Exception):
    """Base class for completion provider failures."""

    code = "COMPLETION_FAILED"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthError(CompletionError):
    """Provider rejected our credentials (401/403)."""

    code = "COMPLETION_UNAUTHORIZED"


class RateLimitError(CompletionError):
    """Provider is throttling requests (429)."""

    code = "COMPLETION_RATE_LIMITED"


class UpstreamError(CompletionError):
    """Provider 5xx, network failure or any other unexpected provider error."""

    code = "COMPLETION_UPSTREAM_ERROR"


class CompletionTimeoutError(CompletionError):
    """No response within the configured wait."""

    code = "COMPLETION_TIMEOUT"
