"""
AI module - Pluggable completion clients (OpenRouter).
"""

from common.ai.base import CompletionClient, CompletionOptions, CompletionResult
from common.ai.errors import (
    CompletionError,
    AuthError,
    RateLimitError,
    UpstreamError,
    CompletionTimeoutError,
)
from common.ai.openrouter import OpenRouterClient

__all__ = [
    "CompletionClient",
    "CompletionOptions",
    "CompletionResult",
    "CompletionError",
    "AuthError",
    "RateLimitError",
    "UpstreamError",
    "CompletionTimeoutError",
    "OpenRouterClient",
]
