"""
Password reset lifecycle against a real (temp SQLite) repository.

Coverage:
  1. issue: unknown email issues nothing; known email stores token + expiry.
  2. supersede: a second issue invalidates the first token.
  3. consume: single use; the old password stops working.
  4. expiry: an expired token is rejected and cleared from the row, whether it
     is validated or consumed; clearing never drops a newer token.
  5. delivery: failures never undo issuance; the right recipient per method.
"""

from datetime import datetime, timedelta, timezone

import pytest

from nexus_admin.auth.delivery import EMAIL, WHATSAPP
from nexus_admin.auth.password import hash_password, verify_password
from nexus_admin.auth.password_reset import PasswordResetService, ResetStatus
from nexus_admin.errors import DeliveryError, TokenExpiredError, TokenInvalidError


class FakeChannel:
    def __init__(self, name: str, configured: bool = True, fail: bool = False):
        self.name = name
        self.configured = configured
        self.fail = fail
        self.sent = []

    def send_reset(self, *, recipient: str, token: str, name: str) -> None:
        if self.fail:
            raise DeliveryError(self.name, "boom")
        self.sent.append({"recipient": recipient, "token": token, "name": name})


class Clock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def channels():
    return {EMAIL: FakeChannel(EMAIL), WHATSAPP: FakeChannel(WHATSAPP)}


@pytest.fixture
def service(user_repo, channels, clock):
    return PasswordResetService(user_repo, channels, token_ttl_hours=1, bcrypt_rounds=4, clock=clock)


@pytest.fixture
def user(user_repo):
    return user_repo.create({
        "email": "a@b.com",
        "password": hash_password("oldpass", rounds=4),
        "name": "Ana",
        "celular": "+5511999990000",
    })


def test_unknown_email_issues_nothing(service, channels):
    assert service.issue_token("nobody@b.com") is None
    assert channels[EMAIL].sent == []


def test_issue_stores_token_and_expiry(service, user, user_repo, clock):
    token = service.issue_token(user.email)
    stored = user_repo.get(user.id)
    assert stored.reset_token == token
    assert stored.reset_token_expiry.replace(tzinfo=timezone.utc) == clock.now + timedelta(hours=1)


def test_email_channel_gets_email_and_whatsapp_gets_phone(service, user, channels):
    service.issue_token(user.email, EMAIL)
    service.issue_token(user.email, WHATSAPP)
    assert channels[EMAIL].sent[0]["recipient"] == "a@b.com"
    assert channels[WHATSAPP].sent[0]["recipient"] == "+5511999990000"


def test_second_issue_supersedes_first(service, user):
    first = service.issue_token(user.email)
    second = service.issue_token(user.email)
    assert first != second
    assert service.check(first).status is ResetStatus.UNKNOWN
    assert service.validate(second)


def test_consume_is_single_use(service, user, user_repo):
    token = service.issue_token(user.email)
    service.consume(token, "newpass")

    stored = user_repo.get(user.id)
    assert verify_password("newpass", stored.password)
    assert not verify_password("oldpass", stored.password)
    assert stored.reset_token is None
    assert stored.reset_token_expiry is None

    with pytest.raises(TokenInvalidError) as exc:
        service.consume(token, "another")
    assert exc.value.message == "Token inválido ou expirado"


def test_expired_token_is_rejected_and_cleared(service, user, user_repo, clock):
    token = service.issue_token(user.email)
    clock.now += timedelta(hours=1, seconds=1)

    with pytest.raises(TokenExpiredError):
        service.consume(token, "newpass")

    stored = user_repo.get(user.id)
    assert stored.reset_token is None
    assert stored.reset_token_expiry is None
    assert verify_password("oldpass", stored.password)
    # once cleared it is just unknown
    assert service.check(token).status is ResetStatus.UNKNOWN


def test_validating_expired_token_clears_it(service, user, user_repo, clock):
    token = service.issue_token(user.email)
    clock.now += timedelta(hours=1, seconds=1)

    assert service.validate(token) is False

    stored = user_repo.get(user.id)
    assert stored.reset_token is None
    assert stored.reset_token_expiry is None
    assert verify_password("oldpass", stored.password)


def test_clearing_a_stale_token_keeps_the_current_one(user_repo, user, clock):
    current = "a" * 64
    expiry = clock.now + timedelta(hours=1)
    user_repo.set_reset_token(user.email, current, expiry)

    assert user_repo.clear_reset_token(user.id, "b" * 64) is False
    assert user_repo.get(user.id).reset_token == current

    assert user_repo.clear_reset_token(user.id, current) is True
    stored = user_repo.get(user.id)
    assert stored.reset_token is None
    assert stored.reset_token_expiry is None


def test_token_still_valid_just_before_expiry(service, user, clock):
    token = service.issue_token(user.email)
    clock.now += timedelta(minutes=59)
    assert service.validate(token)


def test_malformed_token_never_hits_the_row(service, user):
    with pytest.raises(TokenInvalidError) as exc:
        service.consume("not-a-token", "newpass")
    assert exc.value.message == "Token inválido"
    assert not service.validate("")


def test_delivery_failure_keeps_the_token(user_repo, user, clock):
    failing = {EMAIL: FakeChannel(EMAIL, fail=True)}
    service = PasswordResetService(user_repo, failing, bcrypt_rounds=4, clock=clock)
    token = service.issue_token(user.email)
    assert token is not None
    assert user_repo.get(user.id).reset_token == token


def test_unconfigured_channel_still_issues(user_repo, user, clock):
    service = PasswordResetService(user_repo, {EMAIL: FakeChannel(EMAIL, configured=False)}, clock=clock)
    assert service.issue_token(user.email) is not None
    assert service.available_methods() == {EMAIL: False}


def test_background_entry_point_swallows_errors(user_repo, clock):
    class BrokenRepo:
        def get_by_email(self, email):
            raise RuntimeError("db down")

    service = PasswordResetService(BrokenRepo(), {}, clock=clock)
    service.issue_token_in_background("a@b.com")
