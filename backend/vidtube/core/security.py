import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext

from vidtube.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # unknown or malformed hash
        return False


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _encode(claims: Dict[str, Any], secret: str, expires: timedelta, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALG)


def create_access_token(user) -> str:
    claims = {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "fullName": user.full_name,
    }
    return _encode(
        claims,
        settings.ACCESS_TOKEN_SECRET,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        ACCESS,
    )


def create_refresh_token(user) -> str:
    # jti keeps two tokens minted in the same second distinct
    claims = {"id": user.id, "jti": uuid.uuid4().hex}
    return _encode(
        claims,
        settings.REFRESH_TOKEN_SECRET,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        REFRESH,
    )


def decode_token(token: str, secret: str, token_type: str) -> Dict[str, Any]:
    """Verify signature, expiry and token type.

    Raises ``jwt.InvalidTokenError`` (or a subclass such as
    ``jwt.ExpiredSignatureError``) when the token cannot be trusted.
    """
    payload = jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALG],
        options={"require": ["exp", "id"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"expected a {token_type} token")
    return payload


def decode_access_token(token: str) -> Dict[str, Any]:
    return decode_token(token, settings.ACCESS_TOKEN_SECRET, ACCESS)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return decode_token(token, settings.REFRESH_TOKEN_SECRET, REFRESH)
