"""
JWT authentication provider.

Issues and verifies HS256 (or other python-jose supported) bearer tokens.

Example:
    auth = JWTAuth(secret="your-secret-key", access_token_expire_minutes=60)

    token = await auth.create_token("user-123")
    claims = await auth.verify_token(token)
    print(claims["sub"])  # user-123
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any

from jose import jwt, JWTError

from common.auth.base import AuthProvider


class JWTAuth(AuthProvider):
    """JWT token provider."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
    ):
        """
        Initialize JWT auth provider.

        Args:
            secret: Secret key for JWT signing (keep this secure!)
            algorithm: JWT algorithm (default: HS256)
            access_token_expire_minutes: Token expiration time
        """
        if not secret:
            raise ValueError("JWT secret is required")

        self.secret = secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)

    async def create_token(
        self,
        user_id: str,
        **claims: Any,
    ) -> str:
        """Create a JWT token for the user."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "exp": now + self.access_token_expire,
            "iat": now,
            **claims,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a JWT token."""
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")
