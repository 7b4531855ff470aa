"""Registration, login, logout and refresh-token rotation.

Only the SHA-256 digest of the current refresh token is stored on the user
row. Rotation is a compare-and-swap on that column, so of two concurrent
refreshes presenting the same token exactly one succeeds.
"""
import logging
from dataclasses import dataclass

import jwt
from fastapi import UploadFile
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidtube.core.errors import BadRequest, Conflict, NotFound, Unauthorized
from vidtube.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_token,
    verify_password,
)
from vidtube.models.user import User
from vidtube.services.media import MediaStorage, destroy_quietly, upload_or_none
from vidtube.utils.uploads import has_file, stage_upload

logger = logging.getLogger(__name__)


@dataclass
class IssuedTokens:
    access_token: str
    refresh_token: str


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def register_user(
    db: Session,
    storage: MediaStorage,
    *,
    full_name: str,
    email: str,
    username: str,
    password: str,
    avatar: UploadFile | None,
    cover_image: UploadFile | None = None,
) -> User:
    if any(_blank(v) for v in (full_name, email, username, password)):
        raise BadRequest('users.fields_required')

    username = username.strip().lower()
    email = email.strip().lower()
    existing = db.execute(
        select(User.id).where(or_(User.username == username, User.email == email))
    ).first()
    if existing:
        raise Conflict('users.exists')

    if not has_file(avatar):
        raise BadRequest('users.avatar_required')
    with stage_upload(avatar) as path:
        avatar_asset = upload_or_none(storage, path)
    if avatar_asset is None:
        raise BadRequest('users.avatar_upload_failed')

    cover_asset = None
    if has_file(cover_image):
        with stage_upload(cover_image) as path:
            # a missing cover image does not block registration
            cover_asset = upload_or_none(storage, path)

    user = User(
        full_name=full_name.strip(),
        email=email,
        username=username,
        password=password,
        avatar=avatar_asset.url,
        cover_image=cover_asset.url if cover_asset else None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # lost a race with a concurrent registration
        for asset in (avatar_asset, cover_asset):
            if asset is not None:
                destroy_quietly(storage, asset.public_id, asset.resource_type)
        raise Conflict('users.exists') from e
    db.refresh(user)
    logger.info('Registered user %s', user.id)
    return user


def issue_tokens(db: Session, user: User) -> IssuedTokens:
    """Mint a token pair and make the new refresh token the only valid one."""
    tokens = IssuedTokens(
        access_token=create_access_token(user),
        refresh_token=create_refresh_token(user),
    )
    user.refresh_token = hash_token(tokens.refresh_token)
    db.commit()
    db.refresh(user)
    return tokens


def login_user(
    db: Session,
    *,
    username: str | None,
    email: str | None,
    password: str | None,
) -> tuple[User, IssuedTokens]:
    if _blank(username) and _blank(email):
        raise BadRequest('users.identifier_required')
    if _blank(password):
        raise BadRequest('users.password_required')

    clauses = []
    if not _blank(username):
        clauses.append(User.username == username.strip().lower())
    if not _blank(email):
        clauses.append(User.email == email.strip().lower())
    user = db.execute(select(User).where(or_(*clauses))).scalars().first()
    if user is None:
        raise NotFound('users.not_found')

    if not verify_password(password, user.password):
        logger.info('Failed login for user %s', user.id)
        raise Unauthorized('users.invalid_credentials')

    tokens = issue_tokens(db, user)
    logger.info('User %s logged in', user.id)
    return user, tokens


def logout_user(db: Session, user: User) -> None:
    user.refresh_token = None
    db.commit()
    logger.info('User %s logged out', user.id)


def refresh_session(db: Session, incoming_token: str | None) -> tuple[User, IssuedTokens]:
    if _blank(incoming_token):
        raise Unauthorized('errors.auth')

    try:
        claims = decode_refresh_token(incoming_token)
    except jwt.InvalidTokenError as e:
        logger.info('Rejected refresh token: %s', e)
        raise Unauthorized('errors.invalid_refresh_token') from e

    user = db.get(User, claims['id'])
    if user is None:
        raise Unauthorized('errors.invalid_refresh_token')

    presented = hash_token(incoming_token)
    if user.refresh_token != presented:
        logger.info('Stale refresh token presented for user %s', user.id)
        raise Unauthorized('errors.refresh_token_reused')

    tokens = IssuedTokens(
        access_token=create_access_token(user),
        refresh_token=create_refresh_token(user),
    )
    result = db.execute(
        update(User)
        .where(User.id == user.id, User.refresh_token == presented)
        .values(refresh_token=hash_token(tokens.refresh_token))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # another request rotated the token between the read and the write
        db.rollback()
        logger.info('Lost refresh rotation race for user %s', user.id)
        raise Unauthorized('errors.refresh_token_reused')
    db.commit()
    db.refresh(user)
    return user, tokens
