"""
Authentication and password recovery use cases.

Routine outcomes (email taken, wrong password, dead reset link) come back as an
AuthFailure value instead of an exception. Storage and hashing errors are logged
and reported as FailureKind.INTERNAL_FAILURE; their text never leaves this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
import logging
import secrets

from argon2.exceptions import HashingError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storeapi.core.config import Settings, get_settings
from storeapi.core.errors import FailureKind
from storeapi.core.security import (
    fingerprint,
    hash_password,
    new_opaque_token,
    password_needs_rehash,
    verify_password,
)
from storeapi.core.utils import absolute_url
from storeapi.db.models import User
from storeapi.repositories.sql_repository import SQLRepository
from storeapi.services.email_service import EmailNotifier
from storeapi.services.session_service import issue_session

logger = logging.getLogger(__name__)

RESET_PATH = "/reset-password"


@dataclass(frozen=True)
class AuthFailure:
    kind: FailureKind

    @property
    def status(self) -> int:
        return self.kind.status

    @property
    def message(self) -> str:
        return self.kind.default_message


@dataclass
class AuthResult:
    user: User
    token: str
    email_sent: bool = False


@dataclass
class PasswordResetDone:
    user_id: int
    email: str


@lru_cache
def _timing_hash() -> str:
    # verified against when the email is unknown so both login failures cost the same
    return hash_password(secrets.token_urlsafe(16))


@dataclass
class AuthService:
    """Handles registration, login and the password reset flow."""

    settings: Settings = field(default_factory=get_settings)
    repository: SQLRepository = field(default_factory=SQLRepository)
    notifier: EmailNotifier | None = None

    def __post_init__(self):
        if self.notifier is None:
            self.notifier = EmailNotifier(self.settings)

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _internal_failure(self, action: str) -> AuthFailure:
        logger.exception("Unexpected error during %s", action)
        return AuthFailure(FailureKind.INTERNAL_FAILURE)

    def _notify(self, send, *args) -> bool:
        """Run a notifier call; any exception counts as "not delivered"."""
        try:
            return bool(send(*args))
        except Exception:
            logger.exception("Notifier %s raised", getattr(send, "__name__", send))
            return False

    # -------------------------------------- register --------------------------------------
    def register(self, email: str, password: str, name: str, role: str = "user") -> AuthResult | AuthFailure:
        try:
            if self.repository.get_user_by_email(email):
                logger.info("Registration rejected, email already registered: %s", email)
                return AuthFailure(FailureKind.DUPLICATE_IDENTITY)
            password_hash = hash_password(password)
            user = self.repository.create_user(email, name, password_hash, role=role)
        except IntegrityError:
            # lost a race against a concurrent registration of the same email
            logger.info("Registration rejected by unique constraint: %s", email)
            return AuthFailure(FailureKind.DUPLICATE_IDENTITY)
        except ValueError:
            return AuthFailure(FailureKind.INVALID_INPUT)
        except (SQLAlchemyError, HashingError):
            return self._internal_failure("registration")

        token = issue_session(user, self.settings)
        email_sent = self._notify(self.notifier.send_welcome, user.email, user.name)
        if not email_sent:
            logger.warning("Welcome email was not delivered to user id=%s", user.id)
        logger.info("Registered user id=%s role=%s", user.id, user.role)
        return AuthResult(user=user, token=token, email_sent=email_sent)

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> AuthResult | AuthFailure:
        try:
            user = self.repository.get_user_by_email(email)
        except SQLAlchemyError:
            return self._internal_failure("login")

        if not user:
            verify_password(password or "-", _timing_hash())
            return AuthFailure(FailureKind.INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.info("Failed login for user id=%s", user.id)
            return AuthFailure(FailureKind.INVALID_CREDENTIALS)

        if password_needs_rehash(user.password_hash):
            try:
                self.repository.update_user_password(user.id, hash_password(password))
            except (SQLAlchemyError, HashingError):
                logger.warning("Could not upgrade password hash for user id=%s", user.id, exc_info=True)

        return AuthResult(user=user, token=issue_session(user, self.settings))

    def current_user(self, user_id: int) -> User | AuthFailure:
        """Reload the account behind a session; a deleted user no longer authenticates."""
        try:
            user = self.repository.get_user(user_id)
        except SQLAlchemyError:
            return self._internal_failure("session user lookup")
        if not user:
            return AuthFailure(FailureKind.UNAUTHORIZED)
        return user

    # --------------------------------------- password reset ---------------------------------------
    def request_password_reset(self, email: str) -> AuthFailure | None:
        """
        Issue a fresh reset token and email the link. Unknown emails succeed
        silently so the endpoint cannot be used to discover accounts.
        """
        try:
            user = self.repository.get_user_by_email(email)
            if not user:
                logger.info("Password reset requested for unknown email")
                return None
            raw_token = new_opaque_token()
            expires_at = self._now() + timedelta(seconds=self.settings.password_reset_ttl_seconds)
            self.repository.set_reset_token(user.id, fingerprint(raw_token), expires_at)
        except SQLAlchemyError:
            return self._internal_failure("password reset request")

        reset_link = absolute_url(RESET_PATH, self.settings.frontend_url, {"token": raw_token})
        if not self._notify(self.notifier.send_password_reset, user.email, reset_link):
            logger.warning("Password reset email was not delivered to user id=%s", user.id)
        logger.info("Issued password reset token for user id=%s", user.id)
        return None

    def validate_reset_token(self, raw_token: str) -> AuthFailure | None:
        """Read-only check used by the reset form; None means the token is redeemable."""
        raw_token = (raw_token or "").strip()
        if not raw_token:
            return AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
        try:
            user = self.repository.find_user_by_reset_token(fingerprint(raw_token), self._now())
        except SQLAlchemyError:
            return self._internal_failure("reset token validation")
        if not user:
            return AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
        return None

    def redeem_password_reset(self, raw_token: str, new_password: str) -> PasswordResetDone | AuthFailure:
        raw_token = (raw_token or "").strip()
        if not raw_token:
            return AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
        token_fingerprint = fingerprint(raw_token)
        try:
            user = self.repository.find_user_by_reset_token(token_fingerprint, self._now())
            if not user:
                return AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
            password_hash = hash_password(new_password)
            if not self.repository.consume_reset_token(user.id, token_fingerprint, password_hash, self._now()):
                logger.info("Reset token for user id=%s was consumed concurrently or expired", user.id)
                return AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
        except ValueError:
            return AuthFailure(FailureKind.INVALID_INPUT)
        except (SQLAlchemyError, HashingError):
            return self._internal_failure("password reset")

        logger.info("Password reset completed for user id=%s", user.id)
        return PasswordResetDone(user_id=user.id, email=user.email)
