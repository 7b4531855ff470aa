import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube.api.routes import subscriptions, users, videos
from vidtube.core.config import settings
from vidtube.core.database import Base, engine
from vidtube.core.errors import ApiError
from vidtube.core.logging_config import configure_logging
from vidtube.i18n import translator
from vidtube.schemas.common import ErrorResponse
from vidtube.services.media import build_media_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    if getattr(app.state, 'media_storage', None) is None:
        app.state.media_storage = build_media_storage(settings)
    logger.info('Media backend: %s', type(app.state.media_storage).__name__)
    yield


app = FastAPI(title='VidTube Backend', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGIN.split(',') if o.strip()],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# Routers
app.include_router(users.router, prefix='/api/v1/users', tags=['users'])
app.include_router(videos.router, prefix='/api/v1/videos', tags=['videos'])
app.include_router(subscriptions.router, prefix='/api/v1/subscriptions', tags=['subscriptions'])

if settings.MEDIA_BACKEND.lower() == 'local':
    app.mount('/media', StaticFiles(directory=settings.MEDIA_DIR, check_dir=False), name='media')


@app.middleware('http')
async def add_locale_header(request: Request, call_next):
    locale = request.headers.get('X-Locale', settings.DEFAULT_LOCALE)
    request.state.locale = locale
    response = await call_next(request)
    response.headers['Content-Language'] = locale
    return response


def error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    body = ErrorResponse(status_code=status_code, message=message, errors=errors or [])
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True)),
    )


def _locale(request: Request) -> str:
    return getattr(request.state, 'locale', settings.DEFAULT_LOCALE)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    msg = translator.t(exc.key, locale=_locale(request), **exc.params)
    return error_response(exc.status_code, msg, exc.errors)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning('Integrity error on %s %s: %s', request.method, request.url.path, exc.orig)
    msg = translator.t('errors.duplicate', locale=_locale(request))
    return error_response(409, msg)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    msg = translator.t('errors.validation', locale=_locale(request))
    errors = [
        {'loc': list(e.get('loc', ())), 'msg': e.get('msg'), 'type': e.get('type')}
        for e in exc.errors()
    ]
    return error_response(400, msg, errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    msg = translator.t('errors.internal', locale=_locale(request))
    return error_response(500, msg)


@app.get('/health', tags=['meta'])
async def health():
    return {'status': 'ok'}


def run():
    import uvicorn

    configure_logging(settings.LOG_LEVEL)
    uvicorn.run('vidtube.main:app', host=settings.HOST, port=settings.PORT)


if __name__ == '__main__':
    run()
