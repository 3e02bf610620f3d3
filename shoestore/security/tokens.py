"""
Access and refresh token issuance

Signs and verifies HS256 JWTs bound to an account id and role.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt

from ..core.config import Settings, get_settings
from ..errors import AuthenticationError

ALGORITHM = "HS256"


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass
class TokenClaims:
    """Identity recovered from a verified token"""
    user_id: str
    token_type: TokenType
    role: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenIssuer:
    """
    Issues and verifies session credentials.

    Usage:
        issuer = TokenIssuer()
        access = issuer.issue_access_token(user_id, role="user")
        claims = issuer.verify(access, TokenType.ACCESS)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _secret(self, token_type: TokenType) -> str:
        if token_type == TokenType.ACCESS:
            return self.settings.access_token_secret
        return self.settings.refresh_token_secret

    def _encode(self, payload: dict, token_type: TokenType, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **payload,
            "type": token_type.value,
            "iat": now,
            "exp": now + lifetime,
            # Keeps tokens issued within the same second distinct
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret(token_type), algorithm=ALGORITHM)

    def issue_access_token(self, user_id: str, role: str) -> str:
        """Short-lived credential carrying the account id and role"""
        return self._encode(
            {"sub": user_id, "role": role},
            TokenType.ACCESS,
            timedelta(minutes=self.settings.access_token_expiry_minutes),
        )

    def issue_refresh_token(self, user_id: str) -> str:
        """Longer-lived credential used to obtain a new access token"""
        return self._encode(
            {"sub": user_id},
            TokenType.REFRESH,
            timedelta(days=self.settings.refresh_token_expiry_days),
        )

    def verify(self, token: str, token_type: TokenType = TokenType.ACCESS) -> TokenClaims:
        """
        Verify a token's signature, expiry and type.

        Raises:
            AuthenticationError: if the token is invalid, expired or of the
                wrong type
        """
        try:
            payload = jwt.decode(token, self._secret(token_type), algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        if payload.get("type") != token_type.value or not payload.get("sub"):
            raise AuthenticationError("Invalid token")

        return TokenClaims(
            user_id=payload["sub"],
            token_type=token_type,
            role=payload.get("role"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


def generate_reset_token() -> tuple[str, str]:
    """
    Create a password reset token.

    Returns:
        Tuple of (token sent to the user, SHA-256 digest to store)
    """
    token = secrets.token_hex(20)
    return token, digest_reset_token(token)


def digest_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# Singleton instance
token_issuer = TokenIssuer()
