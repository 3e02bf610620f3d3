"""
Account Service

Registration, sign-in, token refresh, profile maintenance and password
reset. Responses never carry the password hash or stored tokens.
"""

import hmac
import logging
from datetime import timedelta
from typing import Optional

from bson import ObjectId

from ..core.config import Settings, get_settings
from ..database.connection import to_object_id, utcnow
from ..database.users import UserDatabase, user_db
from ..errors import (
    AuthenticationError,
    ConflictError,
    InvalidArgumentError,
    MailDeliveryError,
    NotFoundError,
    PermissionDeniedError,
)
from ..models.user import (
    AuthResponse,
    RegisterRequest,
    Role,
    TokenPair,
    UpdateInfoRequest,
    User,
)
from ..security.passwords import hash_password, verify_password
from ..security.tokens import (
    TokenIssuer,
    TokenType,
    digest_reset_token,
    generate_reset_token,
    token_issuer,
)
from .mailer import Mailer, mailer
from .presenters import user_view

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password Reset Request"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    """Account lifecycle and session issuance"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        users: UserDatabase = user_db,
        tokens: TokenIssuer = token_issuer,
        mail: Mailer = mailer,
    ):
        self._settings = settings
        self.users = users
        self.tokens = tokens
        self.mail = mail

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _issue_tokens(self, user: dict) -> TokenPair:
        """Issue a new pair and remember the refresh token on the account"""
        user_id = str(user["_id"])
        pair = TokenPair(
            access_token=self.tokens.issue_access_token(user_id, user.get("role", Role.USER.value)),
            refresh_token=self.tokens.issue_refresh_token(user_id),
        )
        self.users.update_user(user["_id"], {"refresh_token": pair.refresh_token})
        return pair

    def _auth_response(self, user: dict) -> AuthResponse:
        pair = self._issue_tokens(user)
        return AuthResponse(
            user=user_view(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    def _create(self, request: RegisterRequest, role: Role) -> AuthResponse:
        email = normalize_email(request.email)
        if self.users.get_by_email(email):
            raise ConflictError("User already exists")

        user = self.users.create_user(
            name=request.name.strip(),
            email=email,
            password_hash=hash_password(request.password),
            role=role.value,
        )
        logger.info(f"Registered {role.value} account {user['_id']}")
        return self._auth_response(user)

    def register(self, request: RegisterRequest) -> AuthResponse:
        return self._create(request, Role.USER)

    def register_admin(self, request: RegisterRequest, admin_key: Optional[str]) -> AuthResponse:
        """Create an admin account; requires the configured registration key"""
        expected = self.settings.admin_registration_key
        if not expected:
            raise PermissionDeniedError("Admin registration is disabled")
        if not admin_key or not hmac.compare_digest(admin_key, expected):
            logger.warning("Admin registration refused: bad registration key")
            raise PermissionDeniedError("Invalid admin registration key")
        return self._create(request, Role.ADMIN)

    def login(self, email: str, password: str) -> AuthResponse:
        user = self.users.get_by_email(normalize_email(email))
        if not user or not verify_password(password, user.get("password")):
            raise AuthenticationError("Invalid email or password")
        return self._auth_response(user)

    def logout(self, user_id: ObjectId) -> None:
        self.users.update_user(user_id, unset_fields=("refresh_token",))

    def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        """Exchange the account's current refresh token for a new pair"""
        if not refresh_token:
            raise AuthenticationError("Refresh token is required")

        claims = self.tokens.verify(refresh_token, TokenType.REFRESH)
        user = self.users.get_user(to_object_id(claims.user_id, "User"))
        stored = (user or {}).get("refresh_token")
        if not stored or not hmac.compare_digest(stored, refresh_token):
            raise AuthenticationError("Refresh token is no longer valid")
        return self._issue_tokens(user)

    def profile(self, user_id: ObjectId) -> User:
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError("User")
        return user_view(user)

    def update_info(self, user_id: ObjectId, request: UpdateInfoRequest) -> User:
        """Update name and phone; address fields merge into the stored address"""
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError("User")

        fields = {}
        if request.name:
            fields["name"] = request.name.strip()
        if request.phone:
            fields["phone"] = request.phone
        if request.address is not None:
            fields["address"] = {
                **(user.get("address") or {}),
                **request.address.model_dump(exclude_none=True),
            }
        return user_view(self.users.update_user(user_id, fields))

    def update_password(self, user_id: ObjectId, current_password: str, new_password: str) -> None:
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError("User")
        if not verify_password(current_password, user.get("password")):
            raise AuthenticationError("Current password is incorrect")
        self.users.update_user(user_id, {"password": hash_password(new_password)})
        logger.info(f"Password changed for account {user_id}")

    def forgot_password(self, email: str) -> None:
        """
        Mail a password reset link.

        Only the SHA-256 digest of the token is stored. If the mail cannot
        be sent the stored token is removed again and the failure is raised.

        Raises:
            NotFoundError: if no account uses the email
            MailDeliveryError: if the reset mail could not be sent
        """
        user = self.users.get_by_email(normalize_email(email))
        if not user:
            raise NotFoundError("User")

        token, digest = generate_reset_token()
        expires = utcnow() + timedelta(minutes=self.settings.reset_token_expiry_minutes)
        self.users.update_user(user["_id"], {
            "reset_password_token": digest,
            "reset_password_expire": expires,
        })

        reset_url = f"{self.settings.frontend_url.rstrip('/')}/password/reset/{token}"
        body = (
            f"Hello {user['name']},\n\n"
            f"Use the link below to reset your password:\n\n{reset_url}\n\n"
            f"The link expires in {self.settings.reset_token_expiry_minutes} minutes. "
            "If you did not request a reset, ignore this email."
        )
        try:
            self.mail.send(user["email"], RESET_SUBJECT, body)
        except MailDeliveryError:
            self.users.update_user(
                user["_id"],
                unset_fields=("reset_password_token", "reset_password_expire"),
            )
            raise
        logger.info(f"Password reset mail sent for account {user['_id']}")

    def reset_password(self, token: str, password: str, confirm_password: str) -> AuthResponse:
        user = self.users.find_by_reset_token(digest_reset_token(token), utcnow())
        if not user:
            raise InvalidArgumentError("Password reset token is invalid or has expired")
        if password != confirm_password:
            raise InvalidArgumentError("Passwords do not match")

        user = self.users.update_user(
            user["_id"],
            {"password": hash_password(password)},
            unset_fields=("reset_password_token", "reset_password_expire"),
        )
        logger.info(f"Password reset for account {user['_id']}")
        return self._auth_response(user)

    def list_users(self) -> list[User]:
        return [user_view(u) for u in self.users.list_users()]


# Singleton instance
account_service = AccountService()
