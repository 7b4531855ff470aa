from datetime import datetime

from vidtube.schemas.common import CamelModel
from vidtube.schemas.user import OwnerOut


class VideoOut(CamelModel):
    id: str
    owner_id: str
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VideoWithOwnerOut(VideoOut):
    owner: OwnerOut


class PublishToggleOut(CamelModel):
    id: str
    is_published: bool
