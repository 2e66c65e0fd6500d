"""
Abstract authentication provider interface.

Defines the contract that token-based auth providers must implement.
This allows swapping between auth strategies without changing route code.

Example:
    from common.auth import AuthProvider, JWTAuth

    def get_auth_provider(settings) -> AuthProvider:
        return JWTAuth(secret=settings.JWT_SECRET)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class AuthProvider(ABC):
    """
    Abstract authentication provider.

    Account management lives outside this service; providers here only
    issue and verify bearer tokens.
    """

    @abstractmethod
    async def create_token(
        self,
        user_id: str,
        **claims: Any,
    ) -> str:
        """
        Create an authentication token for a user.

        Args:
            user_id: The user's ID (stored in the "sub" claim)
            **claims: Additional claims to embed

        Returns:
            Encoded token string
        """
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify a token and return its claims.

        Args:
            token: The token to verify

        Returns:
            Decoded claims (at minimum "sub")

        Raises:
            ValueError: If the token is invalid or expired
        """
        pass
