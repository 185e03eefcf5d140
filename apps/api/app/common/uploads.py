"""Local disk storage for uploaded files, served under ``/uploads``."""

from __future__ import annotations

import logging
import os
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import BadRequestError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


def upload_root() -> Path:
    return Path(settings.upload_dir)


def unique_name(prefix: str, original_name: Optional[str]) -> str:
    ext = os.path.splitext(original_name or "")[1].lower()
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


def check_extension(
    upload: UploadFile,
    extensions: Iterable[str],
    content_types: Iterable[str],
    message: str,
    require_both: bool = True,
) -> None:
    """Reject files by extension and declared content type."""
    ext_ok = os.path.splitext(upload.filename or "")[1].lower() in set(extensions)
    type_ok = (upload.content_type or "") in set(content_types)
    allowed = (ext_ok and type_ok) if require_both else (ext_ok or type_ok)
    if not allowed:
        raise BadRequestError(message, details={"filename": upload.filename})


def save_upload(upload: UploadFile, subdir: str, filename: str, max_bytes: int) -> tuple[str, int]:
    """Write the upload to ``upload_dir/subdir/filename``.

    Returns the public URL and the stored size in bytes.
    """
    content = upload.file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise BadRequestError(
            f"File exceeds the maximum size of {max_bytes // (1024 * 1024)} MB",
            details={"filename": upload.filename},
        )

    directory = upload_root() / subdir
    directory.mkdir(parents=True, exist_ok=True)
    (directory / filename).write_bytes(content)
    logger.info(f"Stored upload {subdir}/{filename} ({len(content)} bytes)")
    return f"{URL_PREFIX}/{subdir}/{filename}", len(content)


def remove_upload(url: Optional[str]) -> None:
    """Delete a previously stored file; unknown or missing paths are ignored."""
    if not url or not url.startswith(f"{URL_PREFIX}/"):
        return
    relative = url[len(URL_PREFIX) + 1:]
    root = upload_root().resolve()
    path = (root / relative).resolve()
    if root not in path.parents:
        logger.warning(f"Refusing to delete file outside the upload dir: {url}")
        return
    try:
        path.unlink()
        logger.info(f"Removed upload {relative}")
    except FileNotFoundError:
        logger.info(f"Upload already gone: {relative}")
