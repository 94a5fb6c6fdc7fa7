"""
Image upload storage.

Files are stored flat in UPLOAD_DIR as ``{uuid15}_{original_filename}`` and
served back under ``/uploads/``.
"""
import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from kny_api.core.config import settings
from kny_api.core.exceptions import ServerError, ValidationFailedError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def ensure_upload_dir() -> str:
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    return settings.UPLOAD_DIR


async def save_image(upload: Optional[UploadFile]) -> Optional[str]:
    """Store an uploaded image and return its public path, or None if no file was sent."""
    if upload is None or not upload.filename:
        return None

    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailedError("Only image uploads are allowed (jpeg, png, gif, webp)")

    content = await upload.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationFailedError(
            f"Image exceeds the maximum size of {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
        )

    original_name = os.path.basename(upload.filename).replace(" ", "_")
    stored_filename = f"{uuid.uuid4().hex[:15]}_{original_name}"
    stored_path = os.path.join(ensure_upload_dir(), stored_filename)
    try:
        with open(stored_path, "wb") as f:
            f.write(content)
    except OSError as e:
        raise ServerError(f"Failed to store file: {e}")

    logger.info("Stored upload %s (%d bytes)", stored_filename, len(content))
    return f"/uploads/{stored_filename}"
