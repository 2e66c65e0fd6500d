"""
Utilities module - Common helpers for API responses and exceptions.
"""

from common.utils.responses import success_response, error_response, paginated_response
from common.utils.exceptions import (
    APIException,
    BadRequestException,
    UnauthorizedException,
    NotFoundException,
    RateLimitException,
    InternalServerException,
    BadGatewayException,
    GatewayTimeoutException,
)

__all__ = [
    "success_response",
    "error_response",
    "paginated_response",
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "NotFoundException",
    "RateLimitException",
    "InternalServerException",
    "BadGatewayException",
    "GatewayTimeoutException",
]
