"""
Custom HTTP exceptions with error codes.

Extends FastAPI's HTTPException with standardized error codes
for consistent API error responses.

Example:
    from common.utils import NotFoundException

    @app.get("/conversations/{id}")
    async def get_conversation(id: str):
        conversation = await store.get_conversation(id, user_id)
        if not conversation:
            raise NotFoundException("Conversation not found", code="CONVERSATION_NOT_FOUND")
        return conversation
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception with error code support.

    Provides consistent error response format across the API.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Create an API exception.

        Args:
            status_code: HTTP status code
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
            headers: Optional response headers
        """
        detail: Dict[str, Any] = {"message": message}

        if code:
            detail["code"] = code

        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers,
        )
        self.message = message
        self.code = code


class BadRequestException(APIException):
    """400 Bad Request - Invalid input or malformed request."""

    def __init__(
        self,
        message: str = "Bad request",
        code: str = "BAD_REQUEST",
        details: Optional[Any] = None,
    ):
        super().__init__(400, message, code, details)


class UnauthorizedException(APIException):
    """401 Unauthorized - Missing or invalid authentication."""

    def __init__(
        self,
        message: str = "Unauthorized",
        code: str = "UNAUTHORIZED",
        details: Optional[Any] = None,
    ):
        super().__init__(401, message, code, details, headers={"WWW-Authenticate": "Bearer"})


class NotFoundException(APIException):
    """404 Not Found - Resource doesn't exist (or isn't visible to the caller)."""

    def __init__(
        self,
        message: str = "Not found",
        code: str = "NOT_FOUND",
        details: Optional[Any] = None,
    ):
        super().__init__(404, message, code, details)


class RateLimitException(APIException):
    """429 Too Many Requests - Rate limit exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        code: str = "RATE_LIMIT_EXCEEDED",
        retry_after: Optional[int] = None,
    ):
        headers = {}
        if retry_after:
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            status_code=429,
            message=message,
            code=code,
            details={"retryAfter": retry_after} if retry_after else None,
            headers=headers if headers else None,
        )


class InternalServerException(APIException):
    """500 Internal Server Error - Unexpected server error."""

    def __init__(
        self,
        message: str = "Internal server error",
        code: str = "INTERNAL_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(500, message, code, details)


class BadGatewayException(APIException):
    """502 Bad Gateway - An upstream service failed."""

    def __init__(
        self,
        message: str = "Upstream service error",
        code: str = "BAD_GATEWAY",
        details: Optional[Any] = None,
    ):
        super().__init__(502, message, code, details)


class GatewayTimeoutException(APIException):
    """504 Gateway Timeout - An upstream service did not answer in time."""

    def __init__(
        self,
        message: str = "Upstream service timed out",
        code: str = "GATEWAY_TIMEOUT",
        details: Optional[Any] = None,
    ):
        super().__init__(504, message, code, details)
