from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_locale, get_media_storage, get_optional_user
from ...core.database import get_db
from ...i18n import translator
from ...models.user import User
from ...schemas.common import ApiResponse, Page, respond
from ...schemas.video import PublishToggleOut, VideoOut, VideoWithOwnerOut
from ...services import videos as video_service
from ...services.media import MediaStorage

router = APIRouter()


@router.get('', response_model=ApiResponse[Page[VideoWithOwnerOut]])
def list_videos(
    request: Request,
    page: int = Query(1),
    limit: int = Query(10),
    query: str | None = Query(None),
    sort_by: str | None = Query(None, alias='sortBy'),
    sort_type: str | None = Query(None, alias='sortType'),
    user_id: str | None = Query(None, alias='userId'),
    db: Session = Depends(get_db),
):
    result = video_service.list_videos(
        db,
        page=page,
        limit=limit,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=user_id,
    )
    payload = Page[VideoWithOwnerOut](
        items=[VideoWithOwnerOut.model_validate(v) for v in result.items],
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        total_items=result.total_items,
    )
    return respond(payload, translator.t('videos.listed', locale=get_locale(request)))


@router.post('', response_model=ApiResponse[VideoOut], status_code=201)
def publish_video(
    request: Request,
    title: str = Form(''),
    description: str = Form(''),
    video_file: UploadFile | None = File(None, alias='videoFile'),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    video = video_service.publish_video(
        db, storage, user, title, description, video_file, thumbnail
    )
    return respond(
        VideoOut.model_validate(video),
        translator.t('videos.published', locale=get_locale(request)),
        status_code=201,
    )


@router.get('/{video_id}', response_model=ApiResponse[VideoWithOwnerOut])
def get_video(
    video_id: str,
    request: Request,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    video = video_service.get_video(db, video_id, viewer)
    return respond(
        VideoWithOwnerOut.model_validate(video),
        translator.t('videos.fetched', locale=get_locale(request)),
    )


@router.patch('/{video_id}', response_model=ApiResponse[VideoOut])
def update_video(
    video_id: str,
    request: Request,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    video = video_service.update_video(
        db, storage, user, video_id,
        title=title, description=description, thumbnail=thumbnail,
    )
    return respond(
        VideoOut.model_validate(video),
        translator.t('videos.updated', locale=get_locale(request)),
    )


@router.delete('/{video_id}', response_model=ApiResponse[dict])
def delete_video(
    video_id: str,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    video_service.delete_video(db, storage, user, video_id)
    return respond({}, translator.t('videos.deleted', locale=get_locale(request)))


@router.patch('/toggle/publish/{video_id}', response_model=ApiResponse[PublishToggleOut])
def toggle_publish_status(
    video_id: str,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    video = video_service.toggle_publish_status(db, user, video_id)
    return respond(
        PublishToggleOut.model_validate(video),
        translator.t('videos.toggled', locale=get_locale(request)),
    )
