"""Session token issuance and verification (no HTTP).

Learn: verify_token takes the clock as an argument, so the one-hour
window can be checked exactly without sleeping.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from profilehub.auth.jwt import TokenError, create_access_token, verify_token
from profilehub.config import Settings

ISSUED = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def settings():
    return Settings(jwt_secret="unit-test-secret")


def test_roundtrip_returns_subject(settings):
    token = create_access_token(settings, 42, issued_at=ISSUED)
    assert verify_token(settings, token, now=ISSUED + timedelta(seconds=1)) == 42


def test_payload_carries_only_subject_and_times(settings):
    token = create_access_token(settings, 7, issued_at=ISSUED)
    payload = pyjwt.decode(
        token, settings.jwt_secret, algorithms=["HS256"], options={"verify_exp": False}
    )
    assert set(payload) == {"sub", "iat", "exp"}
    assert payload["sub"] == "7"
    assert payload["exp"] - payload["iat"] == 3600


@pytest.mark.parametrize(
    "elapsed",
    [timedelta(0), timedelta(minutes=30), timedelta(minutes=59, seconds=59)],
)
def test_accepted_inside_the_hour(settings, elapsed):
    token = create_access_token(settings, 1, issued_at=ISSUED)
    assert verify_token(settings, token, now=ISSUED + elapsed) == 1


@pytest.mark.parametrize(
    "elapsed",
    [timedelta(hours=1), timedelta(hours=1, seconds=1), timedelta(days=2)],
)
def test_rejected_from_the_hour_on(settings, elapsed):
    token = create_access_token(settings, 1, issued_at=ISSUED)
    with pytest.raises(TokenError, match="expired"):
        verify_token(settings, token, now=ISSUED + elapsed)


def test_lifetime_follows_settings():
    short = Settings(jwt_secret="unit-test-secret", access_token_expire_minutes=5)
    token = create_access_token(short, 1, issued_at=ISSUED)
    assert verify_token(short, token, now=ISSUED + timedelta(minutes=4)) == 1
    with pytest.raises(TokenError):
        verify_token(short, token, now=ISSUED + timedelta(minutes=5))


def test_wrong_secret_rejected(settings):
    token = create_access_token(Settings(jwt_secret="other-secret"), 1, issued_at=ISSUED)
    with pytest.raises(TokenError, match="Invalid token"):
        verify_token(settings, token, now=ISSUED)


def test_garbage_rejected(settings):
    with pytest.raises(TokenError):
        verify_token(settings, "definitely.not.ajwt", now=ISSUED)


def test_missing_subject_rejected(settings):
    token = pyjwt.encode(
        {"exp": ISSUED + timedelta(hours=1)}, settings.jwt_secret, algorithm="HS256"
    )
    with pytest.raises(TokenError):
        verify_token(settings, token, now=ISSUED)


def test_missing_expiry_rejected(settings):
    token = pyjwt.encode({"sub": "1"}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(TokenError):
        verify_token(settings, token, now=ISSUED)


def test_non_numeric_subject_rejected(settings):
    token = pyjwt.encode(
        {"sub": "alice", "exp": ISSUED + timedelta(hours=1)},
        settings.jwt_secret,
        algorithm="HS256",
    )
    with pytest.raises(TokenError, match="malformed"):
        verify_token(settings, token, now=ISSUED)


def test_unsigned_token_rejected(settings):
    token = pyjwt.encode(
        {"sub": "1", "exp": ISSUED + timedelta(hours=1)}, None, algorithm="none"
    )
    with pytest.raises(TokenError):
        verify_token(settings, token, now=ISSUED)
