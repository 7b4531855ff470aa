import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import exists, func, literal, select
from sqlalchemy.orm import Session, contains_eager

from vidtube.core.errors import BadRequest, NotFound
from vidtube.models.subscription import Subscription
from vidtube.models.user import User
from vidtube.models.video import Video
from vidtube.models.watch_history import WatchHistoryEntry
from vidtube.utils.ids import parse_id

logger = logging.getLogger(__name__)


@dataclass
class ChannelProfile:
    id: str
    username: str
    full_name: str
    avatar: str | None
    cover_image: str | None
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
    created_at: datetime | None


def get_channel_profile(db: Session, username: str, viewer: User | None = None) -> ChannelProfile:
    username = (username or '').strip().lower()
    if not username:
        raise BadRequest('users.username_required')

    subscribers = (
        select(func.count(Subscription.id))
        .where(Subscription.channel_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    subscribed_to = (
        select(func.count(Subscription.id))
        .where(Subscription.subscriber_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    if viewer is not None:
        is_subscribed = exists().where(
            Subscription.channel_id == User.id,
            Subscription.subscriber_id == viewer.id,
        ).correlate(User)
    else:
        is_subscribed = literal(False)

    row = db.execute(
        select(User, subscribers, subscribed_to, is_subscribed)
        .where(User.username == username)
    ).first()
    if row is None:
        raise NotFound('users.channel_not_found')

    channel, subscribers_count, subscribed_to_count, subscribed = row
    return ChannelProfile(
        id=channel.id,
        username=channel.username,
        full_name=channel.full_name,
        avatar=channel.avatar,
        cover_image=channel.cover_image,
        subscribers_count=subscribers_count or 0,
        channels_subscribed_to_count=subscribed_to_count or 0,
        is_subscribed=bool(subscribed),
        created_at=channel.created_at,
    )


def get_watch_history(db: Session, user: User) -> list[Video]:
    """Videos the user watched, most recent first, owners eagerly joined."""
    stmt = (
        select(Video)
        .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
        .join(Video.owner)
        .options(contains_eager(Video.owner))
        .where(WatchHistoryEntry.user_id == user.id)
        .order_by(WatchHistoryEntry.watched_at.desc(), WatchHistoryEntry.id.desc())
    )
    return list(db.execute(stmt).scalars().unique().all())


def toggle_subscription(db: Session, subscriber: User, channel_id: str) -> bool:
    """Subscribe to or unsubscribe from a channel; returns the new state."""
    channel_id = parse_id(channel_id)
    if channel_id is None:
        raise BadRequest('subscriptions.invalid_channel_id')
    if channel_id == subscriber.id:
        raise BadRequest('subscriptions.self_subscribe')
    if db.get(User, channel_id) is None:
        raise NotFound('subscriptions.channel_not_found')

    existing = db.execute(
        select(Subscription).where(
            Subscription.subscriber_id == subscriber.id,
            Subscription.channel_id == channel_id,
        )
    ).scalars().first()
    if existing is not None:
        db.delete(existing)
        db.commit()
        return False
    db.add(Subscription(subscriber_id=subscriber.id, channel_id=channel_id))
    db.commit()
    logger.info('User %s subscribed to %s', subscriber.id, channel_id)
    return True


def list_channel_subscribers(db: Session, channel_id: str) -> list[User]:
    channel_id = parse_id(channel_id)
    if channel_id is None:
        raise BadRequest('subscriptions.invalid_channel_id')
    stmt = (
        select(User)
        .join(Subscription, Subscription.subscriber_id == User.id)
        .where(Subscription.channel_id == channel_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def list_subscribed_channels(db: Session, subscriber_id: str) -> list[User]:
    subscriber_id = parse_id(subscriber_id)
    if subscriber_id is None:
        raise BadRequest('subscriptions.invalid_subscriber_id')
    stmt = (
        select(User)
        .join(Subscription, Subscription.channel_id == User.id)
        .where(Subscription.subscriber_id == subscriber_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )
    return list(db.execute(stmt).scalars().all())
