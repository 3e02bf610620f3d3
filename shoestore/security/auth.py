"""
Request Authentication Dependencies

Resolves the calling account from an access token sent either as the
``access_token`` cookie or an ``Authorization: Bearer`` header.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from bson import ObjectId
from fastapi import Request

from ..database.connection import to_object_id
from ..database.users import user_db
from ..errors import AuthenticationError, PermissionDeniedError
from .tokens import TokenType, token_issuer

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


@dataclass
class CurrentUser:
    """Authenticated caller"""
    id: ObjectId
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def extract_token(request: Request) -> Optional[str]:
    """Read the access token from the bearer header, falling back to the cookie"""
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        if token:
            return token
    return request.cookies.get(ACCESS_COOKIE) or None


class AuthDependency:
    """
    FastAPI dependency for authenticated routes.

    Use ``require_user`` for any signed-in account and ``require_admin``
    for the admin surface.
    """

    def __init__(self, require_admin: bool = False):
        """
        Args:
            require_admin: If True, reject accounts without the admin role
        """
        self.require_admin = require_admin

    def __call__(self, request: Request) -> CurrentUser:
        token = extract_token(request)
        if not token:
            raise AuthenticationError("Unauthorized - No token provided")

        claims = token_issuer.verify(token, TokenType.ACCESS)
        user = user_db.get_user(to_object_id(claims.user_id, "User"))
        if not user:
            raise AuthenticationError("Unauthorized - Account no longer exists")

        current = CurrentUser(id=user["_id"], role=user.get("role", "user"))

        if self.require_admin and not current.is_admin:
            logger.warning(f"Admin route refused for account {current.id}")
            raise PermissionDeniedError("Forbidden - Admin access required")

        return current


# Dependency instances
require_user = AuthDependency()
require_admin = AuthDependency(require_admin=True)
