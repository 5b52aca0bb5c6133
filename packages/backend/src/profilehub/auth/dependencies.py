"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request. The gate never touches
the database — it only checks the token's signature and expiry and
hands the subject id to the handler.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header

from profilehub.auth.jwt import TokenError, verify_token
from profilehub.config import Settings, get_settings
from profilehub.errors import InvalidTokenError, UnauthenticatedError

logger = structlog.get_logger()

_BEARER_PREFIX = "Bearer "


class CurrentIdentity:
    """The authenticated subject making the request.

    Learn: user_id comes from the verified token and is the only
    selector handlers may use for "my record" — never an id from the
    request body.
    """

    def __init__(self, user_id: int):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id})"


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentIdentity:
    """Resolve the bearer token to an identity (401 otherwise)."""
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        raise UnauthenticatedError()

    token = authorization[len(_BEARER_PREFIX):].strip()
    if not token:
        raise UnauthenticatedError()

    try:
        user_id = verify_token(settings, token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise InvalidTokenError()

    structlog.contextvars.bind_contextvars(user_id=user_id)
    return CurrentIdentity(user_id=user_id)
