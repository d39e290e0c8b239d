"""Bearer token handling for the field operations API.

Token issuance belongs to the external identity provider; this service
signs session tokens for it and verifies them on every request.
"""

import os
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError


class AuthenticationError(Exception):
    """Authentication error."""

    pass


class AuthService:
    """Service for signing and verifying session tokens."""

    # JWT settings
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRATION_HOURS = 24 * 7  # 7 days

    def __init__(self, jwt_secret: str | None = None):
        """Initialize auth service.

        Args:
            jwt_secret: Secret for signing JWTs
        """
        self.jwt_secret = jwt_secret or os.environ.get(
            "JWT_SECRET_KEY", "dev-secret-change-in-prod"
        )

    def create_session_tokens(self, user_id: str) -> dict[str, Any]:
        """Create an access token for a user.

        Args:
            user_id: User ID

        Returns:
            Dict with access_token, token_type and expires_in
        """
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "type": "access",
            "iat": now,
            "exp": now + timedelta(hours=self.JWT_EXPIRATION_HOURS),
        }
        access_token = jwt.encode(payload, self.jwt_secret, algorithm=self.JWT_ALGORITHM)

        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": self.JWT_EXPIRATION_HOURS * 3600,
        }

    def verify_access_token(self, token: str) -> str:
        """Verify an access token and return the user ID.

        Args:
            token: JWT access token

        Returns:
            User ID

        Raises:
            AuthenticationError: If token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.JWT_ALGORITHM],
                options={"verify_exp": True},
            )

            if payload.get("type") != "access":
                raise AuthenticationError("Invalid token type")

            user_id = payload.get("sub")
            if not user_id:
                raise AuthenticationError("Missing user ID in token")

            return user_id

        except ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except JWTError as e:
            raise AuthenticationError(f"Invalid token: {str(e)}")
