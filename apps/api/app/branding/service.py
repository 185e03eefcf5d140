"""Per-church login branding: title and logo."""

from __future__ import annotations

import logging
import os
import time

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.tenancy import Principal, apply_tenant_filter, get_owned_or_404
from app.branding.schemas import BrandingResponse
from app.common import uploads
from app.common.models import Church
from app.core.config import settings
from app.core.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

LOGO_SUBDIR = "logos"
LOGO_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp")
LOGO_CONTENT_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp")


def to_branding(church: Church) -> BrandingResponse:
    return BrandingResponse(
        church_id=church.id,
        name=church.name,
        login_title=church.login_title or church.name,
        login_logo_url=church.login_logo_url or None,
    )


class BrandingService:
    @staticmethod
    def get_public(db: Session, church_id: int) -> BrandingResponse:
        church = db.get(Church, church_id)
        if church is None:
            raise NotFoundError("Church", church_id)
        return to_branding(church)

    @staticmethod
    def list_branding(db: Session, principal: Principal) -> list[BrandingResponse]:
        stmt = apply_tenant_filter(select(Church), principal, Church.id).order_by(Church.name)
        return [to_branding(church) for church in db.execute(stmt).scalars()]

    @staticmethod
    def update_title(
        db: Session, principal: Principal, church_id: int, login_title: str | None
    ) -> BrandingResponse:
        church = get_owned_or_404(db, Church, church_id, principal, "Church", owner="id")
        church.login_title = login_title or None
        db.commit()
        db.refresh(church)
        return to_branding(church)

    @staticmethod
    def upload_logo(
        db: Session, principal: Principal, church_id: int, upload: UploadFile | None
    ) -> str:
        church = get_owned_or_404(db, Church, church_id, principal, "Church", owner="id")
        if upload is None or not upload.filename:
            raise BadRequestError("No file was uploaded")
        uploads.check_extension(
            upload,
            LOGO_EXTENSIONS,
            LOGO_CONTENT_TYPES,
            "Only PNG, JPG, GIF or WEBP images are allowed",
            require_both=False,
        )

        ext = os.path.splitext(upload.filename)[1].lower()
        filename = f"logo-church-{church.id}-{int(time.time() * 1000)}{ext}"
        url, size = uploads.save_upload(upload, LOGO_SUBDIR, filename, settings.max_upload_bytes)

        previous = church.login_logo_url
        church.login_logo_url = url
        try:
            db.commit()
        except Exception:
            db.rollback()
            uploads.remove_upload(url)
            raise
        if previous != url:
            uploads.remove_upload(previous)
        logger.info(f"Church {church.id} logo replaced ({size} bytes)")
        return url

    @staticmethod
    def delete_logo(db: Session, principal: Principal, church_id: int) -> None:
        church = get_owned_or_404(db, Church, church_id, principal, "Church", owner="id")
        if not church.login_logo_url:
            return
        previous = church.login_logo_url
        church.login_logo_url = None
        db.commit()
        uploads.remove_upload(previous)
        logger.info(f"Church {church.id} logo removed")
