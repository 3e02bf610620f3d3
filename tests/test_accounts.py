"""Tests for accounts, tokens and password reset."""

import re
from datetime import timedelta

import pytest

from shoestore.database.users import user_db
from shoestore.errors import (
    AuthenticationError,
    ConflictError,
    InvalidArgumentError,
    MailDeliveryError,
    NotFoundError,
    PermissionDeniedError,
)
from shoestore.models.checkout import ShippingAddress
from shoestore.models.user import RegisterRequest, UpdateInfoRequest
from shoestore.security.passwords import hash_password, verify_password
from shoestore.security.tokens import TokenIssuer, TokenType
from shoestore.services.accounts import AccountService
from shoestore.services.mailer import Mailer


class RecordingMailer(Mailer):
    """Mailer that keeps messages instead of sending them."""

    def __init__(self):
        super().__init__()
        self.sent = []

    def send(self, recipient, subject, body):
        self.sent.append((recipient, subject, body))


@pytest.fixture
def outbox():
    return RecordingMailer()


@pytest.fixture
def accounts(settings, outbox, db):
    return AccountService(settings=settings, tokens=TokenIssuer(settings), mail=outbox)


def register(accounts, email="ayesha@example.com", password="secret-pass"):
    return accounts.register(RegisterRequest(name="Ayesha", email=email, password=password))


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("secret-pass", rounds=4)
        assert hashed != "secret-pass"
        assert verify_password("secret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_malformed_hash(self):
        assert not verify_password("secret-pass", "not-a-hash")
        assert not verify_password("secret-pass", None)


class TestTokens:
    def test_access_round_trip(self, settings):
        issuer = TokenIssuer(settings)
        token = issuer.issue_access_token("64b7f0c2a1b2c3d4e5f60718", "admin")

        claims = issuer.verify(token, TokenType.ACCESS)

        assert claims.user_id == "64b7f0c2a1b2c3d4e5f60718"
        assert claims.is_admin

    def test_refresh_token_is_not_an_access_token(self, settings):
        issuer = TokenIssuer(settings)
        token = issuer.issue_refresh_token("64b7f0c2a1b2c3d4e5f60718")
        with pytest.raises(AuthenticationError):
            issuer.verify(token, TokenType.ACCESS)

    def test_expired_token(self, settings):
        issuer = TokenIssuer(settings.model_copy(update={"access_token_expiry_minutes": -1}))
        token = issuer.issue_access_token("64b7f0c2a1b2c3d4e5f60718", "user")
        with pytest.raises(AuthenticationError) as exc_info:
            issuer.verify(token)
        assert exc_info.value.message == "Token has expired"

    def test_tampered_token(self, settings):
        issuer = TokenIssuer(settings)
        token = issuer.issue_access_token("64b7f0c2a1b2c3d4e5f60718", "user")
        with pytest.raises(AuthenticationError):
            issuer.verify(token[:-2] + "xx")


class TestRegisterAndLogin:
    def test_register_returns_safe_user(self, accounts):
        auth = register(accounts, email="Ayesha@Example.com")

        assert auth.user.email == "ayesha@example.com"
        assert auth.user.role == "user"
        assert not hasattr(auth.user, "password")
        assert auth.access_token and auth.refresh_token

    def test_duplicate_email(self, accounts):
        register(accounts)
        with pytest.raises(ConflictError):
            register(accounts)

    def test_login(self, accounts):
        register(accounts)
        auth = accounts.login("ayesha@example.com", "secret-pass")
        assert auth.user.name == "Ayesha"

    def test_login_bad_password(self, accounts):
        register(accounts)
        with pytest.raises(AuthenticationError):
            accounts.login("ayesha@example.com", "nope-nope")

    def test_admin_registration_disabled_without_key(self, accounts):
        with pytest.raises(PermissionDeniedError):
            accounts.register_admin(
                RegisterRequest(name="Root", email="root@example.com", password="secret-pass"), "anything"
            )

    def test_admin_registration_with_key(self, settings, outbox, db):
        service = AccountService(
            settings=settings.model_copy(update={"admin_registration_key": "let-me-in"}),
            tokens=TokenIssuer(settings),
            mail=outbox,
        )
        request = RegisterRequest(name="Root", email="root@example.com", password="secret-pass")

        with pytest.raises(PermissionDeniedError):
            service.register_admin(request, "wrong")
        assert service.register_admin(request, "let-me-in").user.role == "admin"


class TestSession:
    def test_refresh_rotates_tokens(self, accounts):
        auth = register(accounts)

        pair = accounts.refresh(auth.refresh_token)

        assert pair.refresh_token != auth.refresh_token
        with pytest.raises(AuthenticationError):
            accounts.refresh(auth.refresh_token)

    def test_logout_revokes_refresh(self, accounts):
        auth = register(accounts)
        accounts.logout(user_db.get_by_email("ayesha@example.com")["_id"])

        with pytest.raises(AuthenticationError):
            accounts.refresh(auth.refresh_token)

    def test_refresh_requires_token(self, accounts):
        with pytest.raises(AuthenticationError):
            accounts.refresh(None)


class TestProfile:
    def test_update_info_merges_address(self, accounts):
        register(accounts)
        user_id = user_db.get_by_email("ayesha@example.com")["_id"]
        accounts.update_info(user_id, UpdateInfoRequest(
            address=ShippingAddress(street="1 Main", city="Lahore", province="Punjab", postal_code="54000")
        ))

        updated = accounts.update_info(user_id, UpdateInfoRequest(
            phone="0300", address=ShippingAddress(city="Karachi")
        ))

        assert updated.phone == "0300"
        assert updated.address.city == "Karachi"
        assert updated.address.street == "1 Main"

    def test_update_password(self, accounts):
        register(accounts)
        user_id = user_db.get_by_email("ayesha@example.com")["_id"]

        with pytest.raises(AuthenticationError):
            accounts.update_password(user_id, "wrong-pass", "new-secret-pass")
        accounts.update_password(user_id, "secret-pass", "new-secret-pass")

        assert accounts.login("ayesha@example.com", "new-secret-pass")


class TestPasswordReset:
    def reset_token_from(self, outbox):
        _, _, body = outbox.sent[-1]
        return re.search(r"/password/reset/([0-9a-f]+)", body).group(1)

    def test_reset_flow(self, accounts, outbox):
        register(accounts)
        accounts.forgot_password("ayesha@example.com")
        token = self.reset_token_from(outbox)

        stored = user_db.get_by_email("ayesha@example.com")
        assert stored["reset_password_token"] != token

        auth = accounts.reset_password(token, "brand-new-pass", "brand-new-pass")

        assert auth.user.email == "ayesha@example.com"
        assert accounts.login("ayesha@example.com", "brand-new-pass")
        with pytest.raises(InvalidArgumentError):
            accounts.reset_password(token, "another-pass", "another-pass")

    def test_passwords_must_match(self, accounts, outbox):
        register(accounts)
        accounts.forgot_password("ayesha@example.com")
        with pytest.raises(InvalidArgumentError):
            accounts.reset_password(self.reset_token_from(outbox), "brand-new-pass", "different-pass")

    def test_expired_token(self, accounts, outbox):
        register(accounts)
        accounts.forgot_password("ayesha@example.com")
        user = user_db.get_by_email("ayesha@example.com")
        user_db.update_user(user["_id"], {"reset_password_expire": user["reset_password_expire"] - timedelta(hours=1)})

        with pytest.raises(InvalidArgumentError):
            accounts.reset_password(self.reset_token_from(outbox), "brand-new-pass", "brand-new-pass")

    def test_unknown_email(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.forgot_password("nobody@example.com")

    def test_mail_failure_rolls_back_token(self, settings, db):
        # No SMTP host configured, so delivery fails
        service = AccountService(settings=settings, tokens=TokenIssuer(settings), mail=Mailer(settings))
        register(service)

        with pytest.raises(MailDeliveryError):
            service.forgot_password("ayesha@example.com")

        stored = user_db.get_by_email("ayesha@example.com")
        assert "reset_password_token" not in stored
        assert "reset_password_expire" not in stored
