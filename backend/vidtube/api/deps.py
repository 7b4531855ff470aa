import logging

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from vidtube.core.config import settings
from vidtube.core.database import get_db
from vidtube.core.errors import InternalError, Unauthorized
from vidtube.core.security import decode_access_token
from vidtube.models.user import User
from vidtube.services.media import MediaStorage, build_media_storage

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_COOKIE = 'accessToken'
REFRESH_COOKIE = 'refreshToken'


def get_locale(request: Request) -> str:
    return getattr(request.state, 'locale', settings.DEFAULT_LOCALE)


def get_media_storage(request: Request) -> MediaStorage:
    storage = getattr(request.app.state, 'media_storage', None)
    if storage is None:
        try:
            storage = build_media_storage(settings)
        except ValueError as e:
            logger.error('Media storage is misconfigured: %s', e)
            raise InternalError('errors.media_unavailable') from e
        request.app.state.media_storage = storage
    return storage


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    return token or None


def _resolve_user(db: Session, token: str) -> User:
    try:
        claims = decode_access_token(token)
    except jwt.InvalidTokenError as e:
        raise Unauthorized('errors.invalid_access_token') from e
    user = db.get(User, claims['id'])
    if user is None:
        raise Unauthorized('errors.invalid_access_token')
    return user


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    token = _extract_token(request, credentials)
    if not token:
        raise Unauthorized('errors.auth')
    user = _resolve_user(db, token)
    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Like ``get_current_user`` but public reads never fail on credentials.

    A missing, expired or otherwise unusable token yields ``None`` and the
    request is served as anonymous.
    """
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        user = _resolve_user(db, token)
    except Unauthorized:
        logger.debug('Ignoring unusable token on %s', request.url.path)
        return None
    request.state.user = user
    return user
