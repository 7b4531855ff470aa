from datetime import datetime

from vidtube.schemas.common import CamelModel


class UserOut(CamelModel):
    """Sanitized profile; never carries the password or refresh token."""

    id: str
    username: str
    email: str
    full_name: str
    avatar: str | None = None
    cover_image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OwnerOut(CamelModel):
    username: str
    full_name: str
    avatar: str | None = None


class UserSummaryOut(OwnerOut):
    id: str


class UpdateAccountIn(CamelModel):
    full_name: str = ""
    email: str = ""


class ChannelProfileOut(CamelModel):
    id: str
    username: str
    full_name: str
    avatar: str | None = None
    cover_image: str | None = None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
    created_at: datetime | None = None


class SubscriptionToggleOut(CamelModel):
    subscribed: bool
