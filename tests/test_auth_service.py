from __future__ import annotations

from datetime import datetime, timedelta, timezone
import threading

import pytest
from sqlalchemy.exc import OperationalError

import storeapi.services.auth_service as auth_service
from storeapi.core.errors import FailureKind
from storeapi.core.security import fingerprint, verify_password
from storeapi.repositories.sql_repository import SQLRepository
from storeapi.services.auth_service import AuthFailure, AuthResult, AuthService, PasswordResetDone
from storeapi.services.session_service import verify_session

from conftest import FakeNotifier, RaisingNotifier


class RecordingRepository(SQLRepository):
    """SQLRepository that records every mutating call."""

    def __init__(self):
        self.mutations: list[str] = []

    def create_user(self, *args, **kwargs):
        self.mutations.append("create_user")
        return super().create_user(*args, **kwargs)

    def update_user_password(self, *args, **kwargs):
        self.mutations.append("update_user_password")
        return super().update_user_password(*args, **kwargs)

    def set_reset_token(self, *args, **kwargs):
        self.mutations.append("set_reset_token")
        return super().set_reset_token(*args, **kwargs)

    def consume_reset_token(self, *args, **kwargs):
        self.mutations.append("consume_reset_token")
        return super().consume_reset_token(*args, **kwargs)


@pytest.fixture()
def svc(settings, notifier):
    return AuthService(settings=settings, repository=SQLRepository(), notifier=notifier)


def _register(svc: AuthService, email: str = "ana@example.com", password: str = "s3cret-pass") -> AuthResult:
    result = svc.register(email, password, "Ana", "user")
    assert isinstance(result, AuthResult)
    return result


# -------------------------------------- register / login --------------------------------------
def test_register_then_login_yields_session_for_same_email(svc, settings, notifier):
    registered = _register(svc)

    assert registered.user.password_hash != "s3cret-pass"
    assert notifier.welcome == [("ana@example.com", "Ana")]
    assert registered.email_sent is True

    result = svc.login("ana@example.com", "s3cret-pass")
    assert isinstance(result, AuthResult)
    claims = verify_session(result.token, settings)
    assert claims.email == "ana@example.com"
    assert claims.user_id == registered.user.id
    assert claims.role == "user"


def test_register_duplicate_email_fails_without_hashing(svc, monkeypatch):
    _register(svc)
    hashed = []
    monkeypatch.setattr(auth_service, "hash_password", lambda pwd: hashed.append(pwd) or "unused")

    result = svc.register("ana@example.com", "another-pass", "Other", "user")

    assert result == AuthFailure(FailureKind.DUPLICATE_IDENTITY)
    assert result.status == 400
    assert hashed == []


def test_email_lookup_is_case_sensitive(svc):
    _register(svc)

    assert isinstance(svc.register("Ana@example.com", "s3cret-pass", "Ana", "user"), AuthResult)
    assert isinstance(svc.login("ANA@example.com", "s3cret-pass"), AuthFailure)


def test_welcome_email_failure_does_not_undo_registration(settings):
    svc = AuthService(settings=settings, notifier=FakeNotifier(deliver=False))

    result = svc.register("bob@example.com", "s3cret-pass", "Bob", "user")

    assert isinstance(result, AuthResult)
    assert result.email_sent is False
    assert svc.repository.get_user_by_email("bob@example.com") is not None


def test_wrong_password_and_unknown_email_fail_identically(svc):
    _register(svc)

    wrong_password = svc.login("ana@example.com", "not-the-password")
    unknown_email = svc.login("nobody@example.com", "s3cret-pass")

    assert wrong_password == unknown_email == AuthFailure(FailureKind.INVALID_CREDENTIALS)
    assert (wrong_password.status, wrong_password.message) == (unknown_email.status, unknown_email.message) == (401, "Invalid credentials")


def test_storage_errors_become_internal_failure(svc, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT * FROM users", {}, Exception("connection refused"))

    monkeypatch.setattr(svc.repository, "get_user_by_email", boom)

    for result in (
        svc.login("ana@example.com", "s3cret-pass"),
        svc.register("ana@example.com", "s3cret-pass", "Ana", "user"),
        svc.request_password_reset("ana@example.com"),
    ):
        assert result == AuthFailure(FailureKind.INTERNAL_FAILURE)
        assert "connection refused" not in result.message


# -------------------------------------- password reset --------------------------------------
def test_reset_request_for_unknown_email_has_no_side_effects(settings, notifier):
    repo = RecordingRepository()
    svc = AuthService(settings=settings, repository=repo, notifier=notifier)

    assert svc.request_password_reset("ghost@example.com") is None
    assert notifier.calls == 0
    assert repo.mutations == []


def test_reset_request_stores_only_fingerprint_with_one_hour_expiry(svc, settings, notifier):
    user = _register(svc).user

    assert svc.request_password_reset("ana@example.com") is None

    raw = notifier.last_reset_token()
    email, link = notifier.resets[-1]
    assert email == "ana@example.com"
    assert link == f"https://shop.example/reset-password?token={raw}"

    stored = svc.repository.get_user(user.id)
    assert stored.reset_token == fingerprint(raw)
    assert stored.reset_token != raw
    expires = stored.reset_token_expires
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    remaining = expires - datetime.now(timezone.utc)
    assert timedelta(minutes=59) < remaining <= timedelta(hours=1)


def test_second_reset_request_invalidates_first_token(svc, notifier):
    _register(svc)
    svc.request_password_reset("ana@example.com")
    first = notifier.last_reset_token()
    svc.request_password_reset("ana@example.com")
    second = notifier.last_reset_token()

    assert first != second
    assert svc.redeem_password_reset(first, "brand-new-pass") == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
    assert isinstance(svc.redeem_password_reset(second, "brand-new-pass"), PasswordResetDone)


def test_expired_token_is_rejected_even_when_fingerprint_matches(svc, notifier):
    user = _register(svc).user
    svc.request_password_reset("ana@example.com")
    raw = notifier.last_reset_token()
    svc.repository.set_reset_token(user.id, fingerprint(raw), datetime.now(timezone.utc) - timedelta(seconds=1))

    assert svc.validate_reset_token(raw) == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
    result = svc.redeem_password_reset(raw, "brand-new-pass")

    assert result == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
    assert result.status == 400
    assert isinstance(svc.login("ana@example.com", "s3cret-pass"), AuthResult)


def test_redeem_changes_password_once(svc, notifier):
    user = _register(svc).user
    svc.request_password_reset("ana@example.com")
    raw = notifier.last_reset_token()
    assert svc.validate_reset_token(raw) is None

    done = svc.redeem_password_reset(raw, "brand-new-pass")

    assert done == PasswordResetDone(user_id=user.id, email="ana@example.com")
    stored = svc.repository.get_user(user.id)
    assert verify_password("brand-new-pass", stored.password_hash)
    assert stored.reset_token is None
    assert stored.reset_token_expires is None

    assert isinstance(svc.login("ana@example.com", "brand-new-pass"), AuthResult)
    assert svc.login("ana@example.com", "s3cret-pass") == AuthFailure(FailureKind.INVALID_CREDENTIALS)
    assert svc.redeem_password_reset(raw, "yet-another-pass") == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)


def test_unknown_or_blank_token_is_rejected(svc):
    _register(svc)

    assert svc.redeem_password_reset("", "brand-new-pass") == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
    assert svc.redeem_password_reset("f" * 64, "brand-new-pass") == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)


def test_concurrent_redemptions_of_one_token_have_single_winner(svc, notifier):
    _register(svc)
    svc.request_password_reset("ana@example.com")
    raw = notifier.last_reset_token()

    barrier = threading.Barrier(2)
    results = []

    def redeem(password):
        barrier.wait()
        results.append(svc.redeem_password_reset(raw, password))

    threads = [threading.Thread(target=redeem, args=(pwd,)) for pwd in ("first-new-pass", "second-new-pass")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    winners = [r for r in results if isinstance(r, PasswordResetDone)]
    losers = [r for r in results if isinstance(r, AuthFailure)]
    assert len(winners) == 1
    assert losers == [AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)]


# -------------------------------------- notifier failures --------------------------------------
def test_raising_notifier_does_not_break_registration(settings):
    notifier = RaisingNotifier()
    svc = AuthService(settings=settings, notifier=notifier)

    result = svc.register("josé@example.com", "s3cret-pass", "José", "user")

    assert isinstance(result, AuthResult)
    assert result.email_sent is False
    assert notifier.welcome == [("josé@example.com", "José")]
    assert svc.repository.get_user_by_email("josé@example.com") is not None


def test_raising_notifier_does_not_break_reset_request(settings):
    svc = AuthService(settings=settings, notifier=FakeNotifier())
    user = _register(svc).user
    svc.notifier = notifier = RaisingNotifier()

    assert svc.request_password_reset("ana@example.com") is None

    raw = notifier.last_reset_token()
    assert svc.repository.get_user(user.id).reset_token == fingerprint(raw)
    assert svc.validate_reset_token(raw) is None


# -------------------------------------- session user / token check --------------------------------------
def test_current_user_reloads_account(svc):
    user = _register(svc).user

    assert svc.current_user(user.id).email == "ana@example.com"
    assert svc.current_user(9999) == AuthFailure(FailureKind.UNAUTHORIZED)


def test_reset_token_check_reports_storage_errors_as_internal(svc, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT * FROM users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(svc.repository, "find_user_by_reset_token", boom)
    monkeypatch.setattr(svc.repository, "get_user", boom)

    assert svc.validate_reset_token("f" * 64) == AuthFailure(FailureKind.INTERNAL_FAILURE)
    assert svc.validate_reset_token("") == AuthFailure(FailureKind.INVALID_OR_EXPIRED_TOKEN)
    assert svc.current_user(1) == AuthFailure(FailureKind.INTERNAL_FAILURE)
