"""
VibeCart - File Upload Utilities
=================================
Centralized image upload, validation, and optimization.
"""

import logging
import os
import uuid
from typing import Optional, Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from config.settings import (
    UPLOAD_DIR, UPLOAD_URL_PREFIX, ALLOWED_IMAGE_EXTENSIONS,
    MAX_FILE_SIZE, DEFAULT_IMAGE_MAX_SIZE,
)
from common.exceptions import ValidationError

logger = logging.getLogger("vibecart.upload")

_ALLOWED_LABEL = ", ".join(sorted(e.lstrip(".") for e in ALLOWED_IMAGE_EXTENSIONS))


def _file_size(upload_file: UploadFile) -> int:
    upload_file.file.seek(0, 2)
    size = upload_file.file.tell()
    upload_file.file.seek(0)
    return size


def validate_image(upload_file: UploadFile) -> str:
    """
    Check size, extension and declared content type of an uploaded image.
    Returns the lower-cased extension.
    """
    if _file_size(upload_file) > MAX_FILE_SIZE:
        raise ValidationError(
            f"File size is too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB"
        )

    ext = os.path.splitext(upload_file.filename)[1].lower()
    content_type = (upload_file.content_type or "").lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS or not content_type.startswith("image/"):
        raise ValidationError(f"Only image files ({_ALLOWED_LABEL}) are allowed!")
    return ext


def save_upload_file(
    upload_file: UploadFile,
    max_size: Tuple[int, int] = DEFAULT_IMAGE_MAX_SIZE,
    subfolder: str = "",
) -> Optional[dict]:
    """
    Save an uploaded image file with validation and optimization.

    Args:
        upload_file: The uploaded file from FastAPI
        max_size: Maximum dimensions (width, height) to resize to
        subfolder: Optional subfolder within UPLOAD_DIR

    Returns:
        dict(filename, path, url, size, mimetype), or None if upload is empty

    Raises:
        ValidationError for oversized, wrongly typed or undecodable files
    """
    if not upload_file or not upload_file.filename:
        return None

    ext = validate_image(upload_file)

    # Build save path
    target_dir = os.path.join(UPLOAD_DIR, subfolder) if subfolder else UPLOAD_DIR
    os.makedirs(target_dir, exist_ok=True)

    unique_name = f"image-{uuid.uuid4().hex}{ext}"
    file_path = os.path.join(target_dir, unique_name)

    try:
        img = Image.open(upload_file.file)
        img.thumbnail(max_size)

        if ext in [".jpg", ".jpeg"]:
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.save(file_path, optimize=True, quality=80)
        else:
            img.save(file_path)
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Image save failed for %s: %s", upload_file.filename, e)
        raise ValidationError("Uploaded file is not a valid image")

    url_parts = [UPLOAD_URL_PREFIX, subfolder, unique_name] if subfolder else [UPLOAD_URL_PREFIX, unique_name]
    return {
        "filename": unique_name,
        # Always use forward slashes for URLs
        "path": file_path.replace("\\", "/"),
        "url": "/".join(url_parts),
        "size": os.path.getsize(file_path),
        "mimetype": upload_file.content_type,
    }


def delete_file(file_path: str) -> bool:
    """Safely delete a file from disk. Returns True if deleted."""
    try:
        if file_path and os.path.exists(file_path):
            os.remove(file_path)
            return True
    except OSError as e:
        logger.warning("Could not delete %s: %s", file_path, e)
    return False
