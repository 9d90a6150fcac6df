"""Store photo ingestion.

Runs when a create/update request carries a photo:
1. Reject anything that is not an image/* upload
2. Name it <uuid4>.<subtype> (e.g. "3f2c....jpeg")
3. Resize to a fixed width (800px), keeping the aspect ratio
4. Write it to the uploads directory, served at /uploads/<filename>

Decode/resize/write are blocking Pillow calls and run in a worker thread.
There is no rollback: a failed resize fails the request, a store saved
without its photo stays saved.
"""

import asyncio
from io import BytesIO
import logging
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile
from PIL import Image

from storefinder.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class PhotoTypeError(ValueError):
    """Uploaded file is not an image."""


def is_photo(content_type: str | None) -> bool:
    """Only image/* uploads are accepted."""
    return bool(content_type) and content_type.lower().startswith("image/")


def photo_filename(content_type: str) -> str:
    """Random filename keeping the upload's type as extension."""
    extension = content_type.split("/", 1)[1].lower()
    return f"{uuid4()}.{extension}"


def scaled_size(width: int, height: int, target_width: int) -> tuple[int, int]:
    """Size after resizing to `target_width`, height following the aspect ratio."""
    return target_width, max(1, round(height * target_width / width))


def write_resized_photo(data: bytes, path: Path, target_width: int) -> tuple[int, int]:
    """Decode `data`, resize it and write it to `path` in its original format.

    Returns:
        The written (width, height).
    """
    with Image.open(BytesIO(data)) as img:
        image_format = img.format
        size = scaled_size(img.width, img.height, target_width)
        resized = img.resize(size, Image.Resampling.LANCZOS)
        path.parent.mkdir(parents=True, exist_ok=True)
        resized.save(path, format=image_format)
    return size


async def save_photo(upload: UploadFile | None) -> str | None:
    """Validate, resize and store an uploaded photo.

    Args:
        upload: The request's photo field, if any.

    Returns:
        Generated filename, or None when no file was uploaded.

    Raises:
        PhotoTypeError: If the upload is not an image.
    """
    # Browsers send an empty, nameless part when no file was picked
    if upload is None or not upload.filename:
        return None

    if not is_photo(upload.content_type):
        raise PhotoTypeError("That file type isn't allowed!")

    settings = get_settings()
    filename = photo_filename(upload.content_type)
    data = await upload.read()
    width, height = await asyncio.to_thread(
        write_resized_photo,
        data,
        settings.uploads_dir / filename,
        settings.photo_width,
    )
    logger.info(f"Saved photo {filename} ({width}x{height})")
    return filename
