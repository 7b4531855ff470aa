"""Media storage backends.

A storage client is constructed explicitly from settings and handed to the
request handlers through ``vidtube.api.deps.get_media_storage``; no backend
keeps process-wide credentials.
"""
import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path

import cloudinary.exceptions
import cloudinary.uploader

logger = logging.getLogger(__name__)


class MediaStorageError(Exception):
    pass


@dataclass
class UploadedAsset:
    url: str
    public_id: str
    resource_type: str = "image"
    duration: float | None = None


class MediaStorage:
    def upload(self, local_path: str | Path, resource_type: str = "auto") -> UploadedAsset:
        raise NotImplementedError

    def destroy(self, public_id: str, resource_type: str = "image") -> None:
        raise NotImplementedError


class CloudinaryMediaStorage(MediaStorage):
    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        if not (cloud_name and api_key and api_secret):
            raise ValueError('Cloudinary credentials are not configured')
        self._credentials = {
            'cloud_name': cloud_name,
            'api_key': api_key,
            'api_secret': api_secret,
        }

    def upload(self, local_path, resource_type="auto"):
        try:
            result = cloudinary.uploader.upload(
                str(local_path), resource_type=resource_type, **self._credentials
            )
        except (cloudinary.exceptions.Error, OSError) as e:
            raise MediaStorageError(str(e)) from e
        url = result.get('secure_url') or result.get('url')
        if not url:
            raise MediaStorageError('upload response carries no url')
        return UploadedAsset(
            url=url,
            public_id=result['public_id'],
            resource_type=result.get('resource_type', 'image'),
            duration=result.get('duration'),
        )

    def destroy(self, public_id, resource_type="image"):
        try:
            cloudinary.uploader.destroy(
                public_id, resource_type=resource_type, **self._credentials
            )
        except cloudinary.exceptions.Error as e:
            raise MediaStorageError(str(e)) from e


VIDEO_SUFFIXES = {'.mp4', '.mov', '.webm', '.mkv', '.avi'}


class LocalMediaStorage(MediaStorage):
    """Keeps uploads on local disk under ``root``, served from ``base_url``."""

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip('/')
        self.root.mkdir(parents=True, exist_ok=True)

    def upload(self, local_path, resource_type="auto"):
        source = Path(local_path)
        if not source.is_file():
            raise MediaStorageError(f'{source} does not exist')
        if resource_type == 'auto':
            resource_type = 'video' if source.suffix.lower() in VIDEO_SUFFIXES else 'image'
        public_id = f"{resource_type}/{uuid.uuid4().hex}{source.suffix.lower()}"
        target = self.root / public_id
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise MediaStorageError(str(e)) from e
        return UploadedAsset(
            url=f"{self.base_url}/{public_id}",
            public_id=public_id,
            resource_type=resource_type,
            duration=0.0 if resource_type == 'video' else None,
        )

    def destroy(self, public_id, resource_type="image"):
        target = (self.root / public_id).resolve()
        if self.root.resolve() not in target.parents:
            raise MediaStorageError(f'{public_id} is outside the media root')
        target.unlink(missing_ok=True)


def build_media_storage(settings) -> MediaStorage:
    backend = settings.MEDIA_BACKEND.lower()
    if backend == 'cloudinary':
        return CloudinaryMediaStorage(
            settings.CLOUDINARY_CLOUD_NAME,
            settings.CLOUDINARY_API_KEY,
            settings.CLOUDINARY_API_SECRET,
        )
    if backend == 'local':
        return LocalMediaStorage(settings.MEDIA_DIR, settings.MEDIA_BASE_URL)
    raise ValueError(f'Unknown MEDIA_BACKEND: {settings.MEDIA_BACKEND}')


def upload_or_none(storage: MediaStorage, local_path, resource_type: str = "auto") -> UploadedAsset | None:
    """Upload and log failures; callers turn ``None`` into a client error."""
    try:
        return storage.upload(local_path, resource_type=resource_type)
    except MediaStorageError:
        logger.warning('Media upload failed for %s', local_path, exc_info=True)
        return None


def destroy_quietly(storage: MediaStorage, public_id: str | None, resource_type: str = "image") -> None:
    if not public_id:
        return
    try:
        storage.destroy(public_id, resource_type=resource_type)
    except MediaStorageError:
        logger.warning('Failed to destroy media asset %s', public_id, exc_info=True)
