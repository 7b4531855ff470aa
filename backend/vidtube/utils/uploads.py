import logging
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fastapi import UploadFile

from vidtube.core.config import settings
from vidtube.core.errors import BadRequest

logger = logging.getLogger(__name__)


def has_file(upload: UploadFile | None) -> bool:
    return upload is not None and bool(upload.filename)


@contextmanager
def stage_upload(upload: UploadFile, temp_dir: str | Path | None = None) -> Iterator[Path]:
    """Spool an incoming file to a temporary path and always remove it afterwards."""
    directory = Path(temp_dir or settings.TEMP_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or '').suffix.lower()
    path = directory / f"{uuid.uuid4().hex}{suffix}"
    limit = settings.MAX_UPLOAD_MB * 1024 * 1024
    try:
        with open(path, 'wb') as f:
            shutil.copyfileobj(upload.file, f)
        if path.stat().st_size > limit:
            raise BadRequest('errors.file_too_large', status_code=413, limit=settings.MAX_UPLOAD_MB)
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning('Failed to cleanup %s', path, exc_info=True)
