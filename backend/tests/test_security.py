from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from vidtube.core.config import settings
from vidtube.core.security import (
    REFRESH,
    _encode,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    verify_password,
)

USER = SimpleNamespace(id='0b7c9a4e-0000-4000-8000-000000000001', email='a@example.com',
                       username='alice', full_name='Alice Doe')


def test_password_hash_roundtrip():
    hashed = hash_password('pass123')
    assert hashed != 'pass123'
    assert verify_password('pass123', hashed)
    assert not verify_password('wrong', hashed)


def test_verify_password_tolerates_malformed_hash():
    assert verify_password('pass123', 'not-a-bcrypt-hash') is False


def test_access_token_claims():
    claims = decode_access_token(create_access_token(USER))
    assert claims['id'] == USER.id
    assert claims['username'] == 'alice'
    assert claims['fullName'] == 'Alice Doe'
    assert claims['type'] == 'access'


def test_refresh_token_carries_only_id():
    claims = decode_refresh_token(create_refresh_token(USER))
    assert claims['id'] == USER.id
    assert 'email' not in claims
    assert claims['type'] == 'refresh'


def test_refresh_tokens_are_unique():
    assert create_refresh_token(USER) != create_refresh_token(USER)


def test_token_types_are_not_interchangeable():
    with pytest.raises(jwt.InvalidTokenError):
        decode_access_token(create_refresh_token(USER))
    with pytest.raises(jwt.InvalidTokenError):
        decode_refresh_token(create_access_token(USER))


def test_expired_token_is_rejected():
    token = _encode({'id': USER.id}, settings.REFRESH_TOKEN_SECRET, timedelta(seconds=-10), REFRESH)
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_refresh_token(token)


def test_token_without_id_is_rejected():
    token = _encode({}, settings.REFRESH_TOKEN_SECRET, timedelta(minutes=5), REFRESH)
    with pytest.raises(jwt.MissingRequiredClaimError):
        decode_refresh_token(token)


def test_hash_token_is_stable_sha256():
    assert hash_token('abc') == hash_token('abc')
    assert len(hash_token('abc')) == 64
    assert hash_token('abc') != hash_token('abd')
