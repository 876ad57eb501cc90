"""
Upload Module - Routes
========================
Standalone image uploads for signed-in users. Files are stored under
UPLOAD_DIR and served from /uploads.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from config.settings import MAX_UPLOAD_FILES
from common.exceptions import ValidationError
from common.upload import save_upload_file, validate_image
from modules.auth.deps import require_login

router = APIRouter(prefix="/api/upload", tags=["upload"])


def _public(saved: dict) -> dict:
    return {k: saved[k] for k in ("filename", "url", "size", "mimetype")}


@router.post("/single")
async def upload_single(image: Optional[UploadFile] = File(None), user=Depends(require_login)):
    saved = save_upload_file(image) if image else None
    if not saved:
        raise ValidationError("No file uploaded")
    return {
        "success": True,
        "message": "File uploaded successfully",
        "data": _public(saved),
    }


@router.post("/multiple")
async def upload_multiple(images: Optional[List[UploadFile]] = File(None), user=Depends(require_login)):
    files = [f for f in (images or []) if f and f.filename]
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > MAX_UPLOAD_FILES:
        raise ValidationError(f"Too many files. Maximum is {MAX_UPLOAD_FILES} files")

    # Reject the whole batch before anything is written
    for f in files:
        validate_image(f)

    saved = [_public(save_upload_file(f)) for f in files]
    return {
        "success": True,
        "message": f"{len(saved)} file(s) uploaded successfully",
        "data": saved,
    }
