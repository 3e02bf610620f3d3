# Authentication and credential handling

from .passwords import hash_password, verify_password
from .tokens import TokenIssuer, TokenClaims, TokenType, token_issuer
from .auth import AuthDependency, CurrentUser, require_user, require_admin

__all__ = [
    "hash_password",
    "verify_password",
    "TokenIssuer",
    "TokenClaims",
    "TokenType",
    "token_issuer",
    "AuthDependency",
    "CurrentUser",
    "require_user",
    "require_admin",
]
