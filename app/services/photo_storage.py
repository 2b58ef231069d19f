"""
Local filesystem storage for task photos.

Images are written to ``settings.upload_dir`` and exposed under
``settings.upload_url_prefix``; the database only keeps the resulting URL.
Blocking file operations run in the threadpool.
"""

import re
import time
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.utils.logger import setup_logger

logger = setup_logger("photo_storage")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def upload_root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def sanitize_filename(filename: str | None) -> str:
    """Reduce a client-supplied filename to a safe basename."""
    name = Path(filename or "").name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name or "photo"


def url_for(stored_name: str) -> str:
    return f"{settings.upload_url_prefix.rstrip('/')}/{stored_name}"


def path_for_url(image_url: str) -> Path:
    """Map a stored photo URL back to its file, refusing paths outside the upload dir."""
    prefix = settings.upload_url_prefix.rstrip("/") + "/"
    relative = image_url[len(prefix):] if image_url.startswith(prefix) else image_url
    root = upload_root().resolve()
    path = (root / relative.lstrip("/")).resolve()
    if root not in path.parents:
        raise ValueError(f"Photo path escapes the upload directory: {image_url}")
    return path


def _write_bytes(path: Path, content: bytes) -> None:
    path.write_bytes(content)


def _unlink(path: Path) -> None:
    path.unlink()


async def save_photo(photo: UploadFile) -> str:
    """
    Validate and store an uploaded image, returning its public URL.

    Raises 400 for a non-image content type, an empty file, or a file larger
    than ``settings.max_upload_size_bytes``.
    """
    if photo.content_type not in settings.allowed_image_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unsupported file type {photo.content_type}. "
                f"Allowed types: {settings.allowed_image_types}"
            ),
        )

    content = await photo.read(settings.max_upload_size_bytes + 1)
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload a file"
        )
    if len(content) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File exceeds the {settings.max_upload_size_bytes} byte limit",
        )

    stored_name = (
        f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-"
        f"{sanitize_filename(photo.filename)}"
    )
    path = upload_root() / stored_name
    await run_in_threadpool(_write_bytes, path, content)
    logger.info(f"Stored photo {stored_name} ({len(content)} bytes)")
    return url_for(stored_name)


async def delete_photo_file(image_url: str) -> None:
    """Remove the file behind ``image_url``. Any OSError propagates."""
    path = path_for_url(image_url)
    await run_in_threadpool(_unlink, path)
    logger.info(f"Deleted photo file {path.name}")


async def delete_photo_files_best_effort(image_urls: list[str]) -> int:
    """Remove several photo files, logging failures instead of raising."""
    deleted = 0
    for image_url in image_urls:
        try:
            await delete_photo_file(image_url)
            deleted += 1
        except (OSError, ValueError) as e:
            logger.error(f"Failed to delete photo file {image_url}: {e}")
    return deleted
