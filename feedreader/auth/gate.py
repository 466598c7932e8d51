"""Per-request authorization from a bearer ``Authorization`` header."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..errors import AuthError
from ..observability.metrics import increment_auth_failure
from .tokens import TokenCodec, TokenError, get_token_codec


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    user_id: str
    username: str
    email: str


def summarize_identity(identity: Optional[Identity]) -> str:
    if identity is None:
        return "anonymous"
    return f"user_id={identity.user_id}, email={identity.email}"


def _reject(reason: str) -> AuthError:
    increment_auth_failure(reason)
    return AuthError()


def authorize(raw_header: Optional[str], codec: Optional[TokenCodec] = None) -> Identity:
    """Return the caller's identity or raise :class:`AuthError`.

    The failure reason is logged but never returned to the caller.
    """

    if not raw_header:
        logger.debug("Rejecting request without Authorization header")
        raise _reject("missing_header")
    if not raw_header.startswith(BEARER_PREFIX):
        logger.debug("Rejecting Authorization header without bearer scheme")
        raise _reject("bad_scheme")
    token = raw_header[len(BEARER_PREFIX):].strip()
    if not token:
        logger.debug("Rejecting empty bearer token")
        raise _reject("empty_token")

    codec = codec or get_token_codec()
    try:
        claims = codec.verify(token)
    except TokenError as exc:
        logger.debug("Bearer token rejected (%s): %s", exc.reason, exc)
        raise _reject(exc.reason) from exc

    return Identity(user_id=claims.user_id, username=claims.username, email=claims.email)


def get_current_identity(request: Request) -> Identity:
    identity = authorize(request.headers.get("Authorization"))
    logger.debug(
        "Authenticated %s request for %s as %s",
        request.method,
        request.url.path,
        summarize_identity(identity),
    )
    return identity
