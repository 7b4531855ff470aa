from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile
from sqlalchemy.orm import Session

from ...api.deps import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_current_user,
    get_locale,
    get_media_storage,
    get_optional_user,
)
from ...core.config import settings
from ...core.database import get_db
from ...i18n import translator
from ...models.user import User
from ...schemas.auth import ChangePasswordIn, LoginIn, LoginOut, RefreshIn, TokenPair
from ...schemas.common import ApiResponse, respond
from ...schemas.user import ChannelProfileOut, UpdateAccountIn, UserOut
from ...schemas.video import VideoWithOwnerOut
from ...services import accounts, channels, sessions
from ...services.media import MediaStorage

router = APIRouter()


def set_session_cookies(response: Response, tokens: sessions.IssuedTokens):
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        httponly=True,
        secure=settings.COOKIE_SECURE,
    )


def clear_session_cookies(response: Response):
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.COOKIE_SECURE)


@router.post('/register', response_model=ApiResponse[UserOut], status_code=201)
def register(
    request: Request,
    full_name: str = Form('', alias='fullName'),
    email: str = Form(''),
    username: str = Form(''),
    password: str = Form(''),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias='coverImage'),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    user = sessions.register_user(
        db,
        storage,
        full_name=full_name,
        email=email,
        username=username,
        password=password,
        avatar=avatar,
        cover_image=cover_image,
    )
    return respond(
        UserOut.model_validate(user),
        translator.t('users.registered', locale=get_locale(request)),
        status_code=201,
    )


@router.post('/login', response_model=ApiResponse[LoginOut])
def login(request: Request, response: Response, data: LoginIn, db: Session = Depends(get_db)):
    user, tokens = sessions.login_user(
        db, username=data.username, email=data.email, password=data.password
    )
    set_session_cookies(response, tokens)
    payload = LoginOut(
        user=UserOut.model_validate(user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    return respond(payload, translator.t('users.logged_in', locale=get_locale(request)))


@router.post('/logout', response_model=ApiResponse[dict])
def logout(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sessions.logout_user(db, user)
    clear_session_cookies(response)
    return respond({}, translator.t('users.logged_out', locale=get_locale(request)))


@router.post('/refresh-token', response_model=ApiResponse[TokenPair])
def refresh_token(
    request: Request,
    response: Response,
    data: RefreshIn | None = Body(None),
    db: Session = Depends(get_db),
):
    incoming = request.cookies.get(REFRESH_COOKIE) or (data.refresh_token if data else None)
    _, tokens = sessions.refresh_session(db, incoming)
    set_session_cookies(response, tokens)
    payload = TokenPair(access_token=tokens.access_token, refresh_token=tokens.refresh_token)
    return respond(payload, translator.t('users.token_refreshed', locale=get_locale(request)))


@router.post('/change-password', response_model=ApiResponse[dict])
def change_password(
    request: Request,
    data: ChangePasswordIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.change_password(db, user, data.old_password, data.new_password)
    return respond({}, translator.t('users.password_changed', locale=get_locale(request)))


@router.get('/current-user', response_model=ApiResponse[UserOut])
def current_user(request: Request, user: User = Depends(get_current_user)):
    return respond(
        UserOut.model_validate(user),
        translator.t('users.current', locale=get_locale(request)),
    )


@router.patch('/update-account', response_model=ApiResponse[UserOut])
def update_account(
    request: Request,
    data: UpdateAccountIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = accounts.update_account(db, user, data.full_name, data.email)
    return respond(
        UserOut.model_validate(user),
        translator.t('users.account_updated', locale=get_locale(request)),
    )


@router.patch('/avatar', response_model=ApiResponse[UserOut])
def update_avatar(
    request: Request,
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    user = accounts.update_avatar(db, storage, user, avatar)
    return respond(
        UserOut.model_validate(user),
        translator.t('users.avatar_updated', locale=get_locale(request)),
    )


@router.patch('/cover-image', response_model=ApiResponse[UserOut])
def update_cover_image(
    request: Request,
    cover_image: UploadFile | None = File(None, alias='coverImage'),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    user = accounts.update_cover_image(db, storage, user, cover_image)
    return respond(
        UserOut.model_validate(user),
        translator.t('users.cover_updated', locale=get_locale(request)),
    )


@router.get('/channel/{username}', response_model=ApiResponse[ChannelProfileOut])
def channel_profile(
    username: str,
    request: Request,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    profile = channels.get_channel_profile(db, username, viewer)
    return respond(
        ChannelProfileOut.model_validate(profile),
        translator.t('users.channel_fetched', locale=get_locale(request)),
    )


@router.get('/watch-history', response_model=ApiResponse[list[VideoWithOwnerOut]])
def watch_history(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    videos = channels.get_watch_history(db, user)
    return respond(
        [VideoWithOwnerOut.model_validate(v) for v in videos],
        translator.t('users.watch_history', locale=get_locale(request)),
    )
