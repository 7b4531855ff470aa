"""Video publishing, ownership-checked mutations and the public listing.

The listing is composed by ``VideoQueryBuilder``. Its stages must be applied
in the order search, owner, published, sort, join, paginate; applying them
out of order raises ``RuntimeError``.
"""
import logging
import math
from dataclasses import dataclass

from fastapi import UploadFile
from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.orm import Session, contains_eager

from vidtube.core.database import utcnow
from vidtube.core.errors import BadRequest, Forbidden, NotFound
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.models.watch_history import WatchHistoryEntry
from vidtube.services.media import MediaStorage, destroy_quietly, upload_or_none
from vidtube.utils.ids import parse_id
from vidtube.utils.uploads import has_file, stage_upload

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'createdAt': Video.created_at,
    'updatedAt': Video.updated_at,
    'views': Video.views,
    'duration': Video.duration,
    'title': Video.title,
}
SORT_TYPES = ('asc', 'desc')
MAX_LIMIT = 100


@dataclass
class PageResult:
    items: list[Video]
    page: int
    limit: int
    total_pages: int
    total_items: int


class VideoQueryBuilder:
    STAGES = ('search', 'owner', 'published', 'sort', 'join', 'paginate')

    def __init__(self):
        self._stmt: Select = select(Video)
        self._count_stmt: Select | None = None
        self._position = -1

    def _advance(self, stage: str):
        index = self.STAGES.index(stage)
        if index <= self._position:
            raise RuntimeError(
                f"stage '{stage}' cannot follow '{self.STAGES[self._position]}'"
            )
        self._position = index

    def search(self, query: str | None):
        self._advance('search')
        terms = (query or '').split()
        if terms:
            self._stmt = self._stmt.where(or_(*(
                or_(
                    Video.title.icontains(term, autoescape=True),
                    Video.description.icontains(term, autoescape=True),
                )
                for term in terms
            )))
        return self

    def owned_by(self, owner_id: str | None):
        self._advance('owner')
        if owner_id:
            self._stmt = self._stmt.where(Video.owner_id == owner_id)
        return self

    def published_only(self):
        self._advance('published')
        self._stmt = self._stmt.where(Video.is_published.is_(True))
        return self

    def sort(self, sort_by: str | None = None, sort_type: str | None = None):
        self._advance('sort')
        column = SORT_FIELDS[sort_by or 'createdAt']
        direction = sort_type or 'desc'
        ordered = column.asc() if direction == 'asc' else column.desc()
        # id keeps page boundaries stable between equal sort keys
        self._stmt = self._stmt.order_by(ordered, Video.id.asc())
        return self

    def join_owner(self):
        self._advance('join')
        self._count_stmt = self._stmt
        self._stmt = self._stmt.join(Video.owner).options(contains_eager(Video.owner))
        return self

    def paginate(self, db: Session, page: int, limit: int) -> PageResult:
        self._advance('paginate')
        counted = self._count_stmt if self._count_stmt is not None else self._stmt
        total = db.scalar(
            select(func.count()).select_from(counted.order_by(None).subquery())
        ) or 0
        rows = db.execute(
            self._stmt.offset((page - 1) * limit).limit(limit)
        ).scalars().unique().all()
        return PageResult(
            items=list(rows),
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
            total_items=total,
        )


def list_videos(
    db: Session,
    page: int = 1,
    limit: int = 10,
    query: str | None = None,
    sort_by: str | None = None,
    sort_type: str | None = None,
    user_id: str | None = None,
) -> PageResult:
    if page < 1 or limit < 1 or limit > MAX_LIMIT:
        raise BadRequest('videos.invalid_page', max_limit=MAX_LIMIT)
    if user_id:
        user_id = parse_id(user_id)
        if user_id is None:
            raise BadRequest('videos.invalid_user_id')
    if sort_by and sort_by not in SORT_FIELDS:
        raise BadRequest('videos.invalid_sort', field=sort_by)
    if sort_type and sort_type not in SORT_TYPES:
        raise BadRequest('videos.invalid_sort_type')

    return (
        VideoQueryBuilder()
        .search(query)
        .owned_by(user_id)
        .published_only()
        .sort(sort_by, sort_type)
        .join_owner()
        .paginate(db, page, limit)
    )


def publish_video(
    db: Session,
    storage: MediaStorage,
    owner: User,
    title: str,
    description: str,
    video_file: UploadFile | None,
    thumbnail: UploadFile | None,
) -> Video:
    title = (title or '').strip()
    description = (description or '').strip()
    if not title or not description:
        raise BadRequest('videos.fields_required')
    if not has_file(video_file):
        raise BadRequest('videos.file_required')
    if not has_file(thumbnail):
        raise BadRequest('videos.thumbnail_required')

    with stage_upload(video_file) as path:
        video_asset = upload_or_none(storage, path, resource_type='video')
    if video_asset is None:
        raise BadRequest('videos.upload_failed')
    with stage_upload(thumbnail) as path:
        thumb_asset = upload_or_none(storage, path, resource_type='image')
    if thumb_asset is None:
        destroy_quietly(storage, video_asset.public_id, 'video')
        raise BadRequest('videos.upload_failed')

    video = Video(
        owner_id=owner.id,
        title=title,
        description=description,
        video_file=video_asset.url,
        video_file_public_id=video_asset.public_id,
        thumbnail=thumb_asset.url,
        thumbnail_public_id=thumb_asset.public_id,
        duration=video_asset.duration or 0.0,
        is_published=False,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    logger.info('User %s published video %s', owner.id, video.id)
    return video


def _find_video(db: Session, video_id: str) -> Video:
    canonical = parse_id(video_id)
    if canonical is None:
        raise BadRequest('videos.invalid_id')
    video = db.get(Video, canonical)
    if video is None:
        raise NotFound('videos.not_found')
    return video


def get_owned_video(db: Session, video_id: str, user: User) -> Video:
    video = _find_video(db, video_id)
    if video.owner_id != user.id:
        raise Forbidden('videos.not_owner')
    return video


def record_view(db: Session, video: Video, viewer: User) -> None:
    db.execute(
        update(Video)
        .where(Video.id == video.id)
        .values(views=Video.views + 1, updated_at=Video.updated_at)
        .execution_options(synchronize_session=False)
    )
    entry = db.execute(
        select(WatchHistoryEntry).where(
            WatchHistoryEntry.user_id == viewer.id,
            WatchHistoryEntry.video_id == video.id,
        )
    ).scalars().first()
    if entry is None:
        db.add(WatchHistoryEntry(user_id=viewer.id, video_id=video.id))
    else:
        entry.watched_at = utcnow()


def get_video(db: Session, video_id: str, viewer: User | None = None) -> Video:
    video = _find_video(db, video_id)
    is_owner = viewer is not None and viewer.id == video.owner_id
    if not video.is_published and not is_owner:
        raise NotFound('videos.not_found')
    if viewer is not None:
        record_view(db, video, viewer)
        db.commit()
        db.refresh(video)
    return video


def update_video(
    db: Session,
    storage: MediaStorage,
    user: User,
    video_id: str,
    title: str | None = None,
    description: str | None = None,
    thumbnail: UploadFile | None = None,
) -> Video:
    video = get_owned_video(db, video_id, user)
    title = (title or '').strip()
    description = (description or '').strip()
    if not title and not description and not has_file(thumbnail):
        raise BadRequest('videos.nothing_to_update')

    old_thumbnail_id = None
    if has_file(thumbnail):
        with stage_upload(thumbnail) as path:
            asset = upload_or_none(storage, path, resource_type='image')
        if asset is None:
            raise BadRequest('videos.upload_failed')
        old_thumbnail_id = video.thumbnail_public_id
        video.thumbnail = asset.url
        video.thumbnail_public_id = asset.public_id
    if title:
        video.title = title
    if description:
        video.description = description
    db.commit()
    db.refresh(video)
    destroy_quietly(storage, old_thumbnail_id, 'image')
    return video


def delete_video(db: Session, storage: MediaStorage, user: User, video_id: str) -> None:
    video = get_owned_video(db, video_id, user)
    assets = [
        (video.video_file_public_id, 'video'),
        (video.thumbnail_public_id, 'image'),
    ]
    db.delete(video)
    db.commit()
    for public_id, resource_type in assets:
        destroy_quietly(storage, public_id, resource_type)
    logger.info('User %s deleted video %s', user.id, video_id)


def toggle_publish_status(db: Session, user: User, video_id: str) -> Video:
    video = get_owned_video(db, video_id, user)
    video.is_published = not video.is_published
    db.commit()
    db.refresh(video)
    return video
