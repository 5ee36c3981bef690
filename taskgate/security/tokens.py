"""
Validate signed bearer tokens and extract the user id.

Only validation lives here. Tokens are issued elsewhere (an identity provider or
a login service) with the shared secret in `TASKGATE_JWT_SECRET`.

Before trusting anything in the token we check:

1. the signature (HMAC with the shared secret),
2. that it has not expired (``exp`` is required),
3. that it names a subject (``sub``), which must be an integer user id.

Role, company and department are deliberately NOT read from the token: the
user row is authoritative, so a role change takes effect on the next request.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import jwt

logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when token validation fails. Do not log the token."""


def decode_user_id(
    token: str,
    secret: str,
    algorithms: Sequence[str] = ("HS256",),
    leeway_seconds: int = 0,
) -> int:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=list(algorithms),
            leeway=leeway_seconds,
            options={"require": ["exp", "sub"], "verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError as e:
        logger.info("Token expired")
        raise TokenValidationError("Token expired") from e
    except jwt.InvalidTokenError as e:
        logger.info("Token invalid: %s", type(e).__name__)
        raise TokenValidationError("Invalid token") from e

    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        logger.info("Token subject is not a user id")
        raise TokenValidationError("Invalid token: subject") from e
