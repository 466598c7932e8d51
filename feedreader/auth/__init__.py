"""Authentication: session tokens, the request gate and account operations.

:mod:`feedreader.auth.tokens` issues and verifies the signed session tokens,
:mod:`feedreader.auth.gate` turns an ``Authorization`` header into an
:class:`Identity`, and :mod:`feedreader.auth.users` implements register/login.
"""

from __future__ import annotations

from .gate import BEARER_PREFIX, Identity, authorize, get_current_identity
from .tokens import (
    ALGORITHM,
    Expired,
    InvalidSignature,
    TokenClaims,
    TokenCodec,
    TokenError,
    UnsupportedAlgorithm,
    get_token_codec,
)
from .users import login_user, register_user

__all__ = [
    "ALGORITHM",
    "BEARER_PREFIX",
    "Expired",
    "Identity",
    "InvalidSignature",
    "TokenClaims",
    "TokenCodec",
    "TokenError",
    "UnsupportedAlgorithm",
    "authorize",
    "get_current_identity",
    "get_token_codec",
    "login_user",
    "register_user",
]
