"""Signed, self-contained session tokens.

Tokens are HS256 JWTs carrying ``{id, username, email, iat, exp}``. Nothing is
stored server side: a token stays valid until ``exp`` passes, and there is no
revocation list. Keep ``TOKEN_TTL_HOURS`` short for that reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol

from jose import jwt
from jose.exceptions import JWTError

from ..config import get_jwt_secret, get_token_ttl
from ..errors import ConfigError


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for token verification failures."""

    reason = "invalid"


class InvalidSignature(TokenError):
    reason = "invalid_signature"


class UnsupportedAlgorithm(TokenError):
    reason = "unsupported_algorithm"


class Expired(TokenError):
    reason = "expired"


class TokenSubject(Protocol):
    id: str
    username: str
    email: str


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: str
    email: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TokenCodec:
    def __init__(self, secret: Optional[str], ttl: timedelta):
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        self._secret = secret
        self.ttl = ttl

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigError("JWT_SECRET is not set. Unable to sign or verify session tokens.")
        return self._secret

    def issue(self, user: TokenSubject, now: Optional[datetime] = None) -> str:
        secret = self._require_secret()
        issued_at = _as_utc(now) if now is not None else _utcnow()
        expires_at = issued_at + self.ttl
        claims: Dict[str, Any] = {
            "id": str(user.id),
            "username": user.username,
            "email": user.email,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(claims, secret, algorithm=ALGORITHM)

    def verify(self, token: str, now: Optional[datetime] = None) -> TokenClaims:
        secret = self._require_secret()
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise InvalidSignature("Malformed token") from exc

        alg = header.get("alg")
        if alg != ALGORITHM:
            raise UnsupportedAlgorithm(f"Unexpected signing method: {alg!r}")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        claims = _claims_from_payload(payload)
        current = _as_utc(now) if now is not None else _utcnow()
        if claims.expires_at <= current:
            raise Expired("Token has expired")
        return claims


def _claims_from_payload(payload: Dict[str, Any]) -> TokenClaims:
    missing = [key for key in ("id", "username", "email", "exp") if payload.get(key) in (None, "")]
    if missing:
        raise InvalidSignature(f"Token is missing claims: {', '.join(missing)}")
    try:
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        issued_raw = payload.get("iat")
        issued_at = (
            datetime.fromtimestamp(int(issued_raw), tz=timezone.utc)
            if issued_raw is not None
            else expires_at
        )
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidSignature("Token has invalid time claims") from exc
    return TokenClaims(
        user_id=str(payload["id"]),
        username=str(payload["username"]),
        email=str(payload["email"]),
        issued_at=issued_at,
        expires_at=expires_at,
    )


@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    """Return the process-wide codec built from the environment."""

    secret = get_jwt_secret()
    if not secret:
        logger.warning("JWT_SECRET is not configured; token issue and verification will fail")
    return TokenCodec(secret, get_token_ttl())
