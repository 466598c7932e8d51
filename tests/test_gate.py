from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from feedreader.auth.gate import Identity, authorize
from feedreader.auth.tokens import TokenCodec
from feedreader.errors import AuthError


@dataclass
class _User:
    id: str = "usr_gate"
    username: str = "gatekeeper"
    email: str = "gate@example.com"


@pytest.fixture()
def codec():
    return TokenCodec("gate-secret", timedelta(hours=24))


def test_authorize_returns_identity_for_valid_bearer(codec):
    token = codec.issue(_User())

    identity = authorize(f"Bearer {token}", codec=codec)

    assert identity == Identity(user_id="usr_gate", username="gatekeeper", email="gate@example.com")


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Bearer    "])
def test_authorize_rejects_missing_credentials(codec, header):
    with pytest.raises(AuthError):
        authorize(header, codec=codec)


def test_authorize_requires_literal_bearer_prefix(codec):
    token = codec.issue(_User())

    for header in (token, f"Basic {token}", f"Token {token}", f"bearer{token}"):
        with pytest.raises(AuthError):
            authorize(header, codec=codec)


def test_authorize_hides_failure_reason(codec):
    expired = codec.issue(_User(), now=datetime.now(timezone.utc) - timedelta(days=2))
    foreign = TokenCodec("other-secret", timedelta(hours=1)).issue(_User())

    messages = set()
    for header in (f"Bearer {expired}", f"Bearer {foreign}", "Bearer test", None):
        with pytest.raises(AuthError) as excinfo:
            authorize(header, codec=codec)
        messages.add(excinfo.value.message)
        assert excinfo.value.status_code == 401

    assert messages == {"Unauthorized"}


def test_authorize_uses_process_codec_by_default():
    from feedreader.auth.tokens import get_token_codec

    token = get_token_codec().issue(_User())

    assert authorize(f"Bearer {token}").user_id == "usr_gate"
