import logging

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidtube.core.errors import BadRequest, Conflict
from vidtube.core.security import verify_password
from vidtube.models.user import User
from vidtube.services.media import MediaStorage, upload_or_none
from vidtube.utils.uploads import has_file, stage_upload

logger = logging.getLogger(__name__)


def change_password(db: Session, user: User, old_password: str, new_password: str) -> None:
    if not old_password or not new_password:
        raise BadRequest('users.passwords_required')
    if not verify_password(old_password, user.password):
        raise BadRequest('users.invalid_old_password')
    # the model hashes on assignment
    user.password = new_password
    db.commit()


def update_account(db: Session, user: User, full_name: str, email: str) -> User:
    full_name = (full_name or '').strip()
    email = (email or '').strip().lower()
    if not full_name or not email:
        raise BadRequest('users.fields_required')

    taken = db.execute(
        select(User.id).where(User.email == email, User.id != user.id)
    ).first()
    if taken:
        raise Conflict('users.email_taken')

    user.full_name = full_name
    user.email = email
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict('users.email_taken') from e
    db.refresh(user)
    return user


def _replace_image(db: Session, storage: MediaStorage, user: User, upload: UploadFile | None,
                   field: str, missing_key: str, failed_key: str) -> User:
    if not has_file(upload):
        raise BadRequest(missing_key)
    with stage_upload(upload) as path:
        asset = upload_or_none(storage, path)
    if asset is None:
        raise BadRequest(failed_key)
    # TODO: destroy the previous asset once users store its public id
    setattr(user, field, asset.url)
    db.commit()
    db.refresh(user)
    return user


def update_avatar(db: Session, storage: MediaStorage, user: User, upload: UploadFile | None) -> User:
    return _replace_image(db, storage, user, upload, 'avatar',
                          'users.avatar_required', 'users.avatar_upload_failed')


def update_cover_image(db: Session, storage: MediaStorage, user: User, upload: UploadFile | None) -> User:
    return _replace_image(db, storage, user, upload, 'cover_image',
                          'users.cover_required', 'users.cover_upload_failed')
