"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection (Motor)
- auth: Pluggable token authentication (JWT)
- ai: Pluggable completion clients (OpenRouter)
- utils: Standard responses and exceptions
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import AuthProvider, JWTAuth, create_auth_dependency
from common.ai import CompletionClient, OpenRouterClient
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    NotFoundException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "AuthProvider",
    "JWTAuth",
    "create_auth_dependency",
    # AI
    "CompletionClient",
    "OpenRouterClient",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "NotFoundException",
    # Config
    "BaseAppSettings",
]
