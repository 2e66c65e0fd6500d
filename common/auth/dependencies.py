"""
FastAPI authentication dependencies.

Provides a factory that turns any AuthProvider into a FastAPI dependency
resolving the caller's user ID from a bearer token.

Example:
    from common.auth import JWTAuth, create_auth_dependency

    auth = JWTAuth(secret="your-secret")
    get_current_user_id = create_auth_dependency(lambda: auth)

    @app.get("/profile")
    async def get_profile(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
"""

from typing import Callable, Optional

from fastapi import Header

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthorizedException


def create_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI auth dependencies.

    Args:
        get_auth_provider: Callable that returns the AuthProvider instance
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency function that extracts and verifies the user ID
    """

    async def get_current_user_id(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        """
        Extract and verify user ID from the authorization header.

        Raises:
            UnauthorizedException: If token is missing, invalid, or expired
        """
        if not authorization:
            raise UnauthorizedException(
                message="Missing authorization header",
                code="AUTH_REQUIRED",
            )

        prefix = f"{scheme} "
        if not authorization.startswith(prefix):
            raise UnauthorizedException(
                message=f"Invalid authorization scheme. Expected: {scheme}",
                code="INVALID_AUTH_SCHEME",
            )

        token = authorization[len(prefix):].strip()

        if not token:
            raise UnauthorizedException(message="Token is empty", code="EMPTY_TOKEN")

        auth = get_auth_provider()
        try:
            payload = await auth.verify_token(token)
        except ValueError as e:
            raise UnauthorizedException(message=str(e), code="INVALID_TOKEN")

        user_id = payload.get("sub") or payload.get("userId")
        if not user_id:
            raise UnauthorizedException(message="Token missing user ID", code="INVALID_TOKEN")

        return str(user_id)

    return get_current_user_id
