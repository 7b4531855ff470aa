from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_locale
from ...core.database import get_db
from ...i18n import translator
from ...models.user import User
from ...schemas.common import ApiResponse, respond
from ...schemas.user import UserSummaryOut, SubscriptionToggleOut
from ...services import channels

router = APIRouter()


@router.post('/c/{channel_id}', response_model=ApiResponse[SubscriptionToggleOut])
def toggle_subscription(
    channel_id: str,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subscribed = channels.toggle_subscription(db, user, channel_id)
    key = 'subscriptions.subscribed' if subscribed else 'subscriptions.unsubscribed'
    return respond(
        SubscriptionToggleOut(subscribed=subscribed),
        translator.t(key, locale=get_locale(request)),
    )


@router.get('/c/{channel_id}', response_model=ApiResponse[list[UserSummaryOut]])
def channel_subscribers(channel_id: str, request: Request, db: Session = Depends(get_db)):
    users = channels.list_channel_subscribers(db, channel_id)
    return respond(
        [UserSummaryOut.model_validate(u) for u in users],
        translator.t('subscriptions.subscribers', locale=get_locale(request)),
    )


@router.get('/u/{subscriber_id}', response_model=ApiResponse[list[UserSummaryOut]])
def subscribed_channels(subscriber_id: str, request: Request, db: Session = Depends(get_db)):
    users = channels.list_subscribed_channels(db, subscriber_id)
    return respond(
        [UserSummaryOut.model_validate(u) for u in users],
        translator.t('subscriptions.channels', locale=get_locale(request)),
    )
