"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A session token is short-lived (60min by default) and carries only the
user id as "sub". There is no refresh token and no server-side revocation
list: after expiry the holder logs in again.

Verification is a pure function of (token, settings, now) so callers and
tests can pin the clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from profilehub.config import Settings


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(
    settings: Settings,
    user_id: int,
    issued_at: Optional[datetime] = None,
) -> str:
    """Create a signed session token for a user id."""
    issued_at = issued_at or datetime.now(timezone.utc)
    expires = issued_at + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(
    settings: Settings,
    token: str,
    now: Optional[datetime] = None,
) -> int:
    """Verify a session token and return its subject user id.

    Raises TokenError on a bad signature, a malformed payload, or when
    ``now`` has reached the token's expiry.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"], "verify_exp": False},
        )
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    now = now or datetime.now(timezone.utc)
    try:
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise TokenError("Invalid token: malformed claims")

    if now >= expires_at:
        raise TokenError("Token has expired")
    return user_id
