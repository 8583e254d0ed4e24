"""Token Verification — bearer JWT decoding into a CallerIdentity."""

import time

import jwt
import pytest

from parley.config import Settings
from parley.core.errors import UnauthorizedError
from parley.infrastructure.auth import decode_identity

SETTINGS = Settings(auth_jwt_secret="test-secret", auth_jwt_leeway_seconds=0)


def _encode(payload, secret="test-secret"):
    return jwt.encode(payload, secret, algorithm="HS256")


def test_claims_map_onto_identity():
    token = _encode({
        "sub": "auth|alice", "name": "Alice", "email": "a@example.com",
        "picture": "https://img/a.png",
    })
    identity = decode_identity(token, SETTINGS)
    assert identity.subject == "auth|alice"
    assert identity.name == "Alice"
    assert identity.email == "a@example.com"
    assert identity.picture_url == "https://img/a.png"


def test_subject_only_token_is_enough():
    identity = decode_identity(_encode({"sub": "auth|bob"}), SETTINGS)
    assert identity.name is None


def test_token_without_subject_is_rejected():
    with pytest.raises(UnauthorizedError):
        decode_identity(_encode({"name": "Nobody"}), SETTINGS)


def test_token_with_wrong_signature_is_rejected():
    with pytest.raises(UnauthorizedError):
        decode_identity(_encode({"sub": "auth|eve"}, secret="other-secret"), SETTINGS)


def test_expired_token_is_rejected():
    token = _encode({"sub": "auth|alice", "exp": int(time.time()) - 60})
    with pytest.raises(UnauthorizedError) as exc:
        decode_identity(token, SETTINGS)
    assert exc.value.context.debug_info == {"reason": "expired"}


def test_garbage_is_rejected():
    with pytest.raises(UnauthorizedError):
        decode_identity("not-a-jwt", SETTINGS)


def test_issuer_is_enforced_when_configured():
    settings = Settings(auth_jwt_secret="test-secret", auth_jwt_issuer="https://idp")
    with pytest.raises(UnauthorizedError):
        decode_identity(_encode({"sub": "auth|alice", "iss": "https://evil"}), settings)
    identity = decode_identity(
        _encode({"sub": "auth|alice", "iss": "https://idp"}), settings,
    )
    assert identity.subject == "auth|alice"
