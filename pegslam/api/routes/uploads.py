"""
Image uploads for content and profile photos.

Files are written under ``upload_dir/<type>/`` and served back from
``upload_url_prefix`` by the static mount in ``create_app``.
"""

from __future__ import annotations

import secrets
import time
from pathlib import Path

from fastapi import APIRouter, File, Form, Request, UploadFile

from pegslam.api.dependencies import get_state, require_user_or_staff
from pegslam.exceptions import ValidationError
from pegslam.logging_config import log_event

router = APIRouter(prefix="/api", tags=["uploads"])

ALLOWED_UPLOAD_TYPES = ("slider", "news", "gallery", "sponsors", "logo", "competitions", "profile")
DEFAULT_UPLOAD_TYPE = "gallery"

_CHUNK_SIZE = 64 * 1024


def sanitize_upload_type(value: str | None) -> str:
    """Lower-cased upload type, or ``gallery`` for anything not on the list."""
    cleaned = (value or "").strip().lower()
    return cleaned if cleaned in ALLOWED_UPLOAD_TYPES else DEFAULT_UPLOAD_TYPE


def _safe_extension(filename: str | None) -> str:
    suffix = Path(filename or "").suffix.lower()
    if not suffix or len(suffix) > 10 or not suffix[1:].isalnum():
        return ""
    return suffix


def _format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes // (1024 * 1024)}MB"
    return f"{num_bytes // 1024}KB"


def _read_limited(upload: UploadFile, max_bytes: int) -> bytes:
    chunks = []
    size = 0
    while True:
        chunk = upload.file.read(_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise ValidationError(f"File is too large (max {_format_size(max_bytes)})", field="image")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/upload", responses={400: {"description": "Missing file, not an image, or too large"}})
def upload_image(
    request: Request,
    image: UploadFile | None = File(default=None),
    requested_type: str = Form(default=DEFAULT_UPLOAD_TYPE, alias="type"),
) -> dict:
    """Store one image and return its public URL."""
    principal = require_user_or_staff(request)
    if image is None:
        raise ValidationError("No file uploaded", field="image")
    if not (image.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed", field="image")

    state = get_state(request)
    data = _read_limited(image, state.settings.max_upload_bytes)

    upload_type = sanitize_upload_type(requested_type)
    target_dir = (state.upload_dir / upload_type).resolve()
    if not target_dir.is_relative_to(state.upload_dir.resolve()):
        raise ValidationError("Invalid upload type", field="type")
    target_dir.mkdir(parents=True, exist_ok=True)

    filename = f"image-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{_safe_extension(image.filename)}"
    (target_dir / filename).write_bytes(data)

    log_event("image_uploaded", upload_type=upload_type, size_bytes=len(data), uploaded_by=principal["id"])
    prefix = state.settings.upload_url_prefix.rstrip("/")
    return {
        "url": f"{prefix}/{upload_type}/{filename}",
        "filename": filename,
        "message": "File uploaded successfully",
    }
