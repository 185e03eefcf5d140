"""Meeting minutes service layer."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Optional

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.auth.tenancy import (
    Principal,
    apply_tenant_filter,
    get_owned_or_404,
    resolve_church_id,
)
from app.common import uploads
from app.common.models import (
    Church,
    Member,
    Minute,
    MinuteAttendee,
    MinuteFile,
    Motion,
    MotionVoter,
)
from app.common.pagination import PageParams, Pagination, paginate
from app.core.config import settings
from app.core.errors import BadRequestError, NotFoundError
from app.minutes.schemas import MinuteCreateRequest, MinuteUpdateRequest

logger = logging.getLogger(__name__)

UPLOAD_SUBDIR = "minutes"
ALLOWED_EXTENSIONS = (".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png")
ALLOWED_CONTENT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
)


def _check_members(db: Session, church_id: int, member_ids: set[int]) -> None:
    if not member_ids:
        return
    found = set(
        db.execute(
            select(Member.id).where(Member.id.in_(member_ids), Member.church_id == church_id)
        ).scalars()
    )
    missing = member_ids - found
    if missing:
        raise BadRequestError(
            "Attendees and voters must be members of the minute's church",
            details={"member_ids": sorted(missing)},
        )


def _members_by_id(db: Session, member_ids: set[int]) -> dict[int, Member]:
    if not member_ids:
        return {}
    members = db.execute(select(Member).where(Member.id.in_(member_ids))).scalars()
    return {member.id: member for member in members}


def _files_by_minute(db: Session, minute_ids: list[int]) -> dict[int, list[MinuteFile]]:
    grouped: dict[int, list[MinuteFile]] = defaultdict(list)
    if not minute_ids:
        return grouped
    for file in db.execute(
        select(MinuteFile)
        .where(MinuteFile.minute_id.in_(minute_ids))
        .order_by(MinuteFile.id)
    ).scalars():
        grouped[file.minute_id].append(file)
    return grouped


class MinuteService:
    @staticmethod
    def list_minutes(
        db: Session,
        principal: Principal,
        params: PageParams,
        church_id: Optional[int] = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        stmt = apply_tenant_filter(select(Minute), principal, Minute.church_id)
        if church_id is not None:
            stmt = stmt.where(Minute.church_id == church_id)
        stmt = stmt.order_by(Minute.meeting_date.desc(), Minute.id.desc())
        minutes, pagination = paginate(db, stmt, params)

        files = _files_by_minute(db, [m.id for m in minutes])
        items = [{"minute": minute, "files": files.get(minute.id, [])} for minute in minutes]
        return items, pagination

    @staticmethod
    def get_minute_detail(db: Session, principal: Principal, minute_id: int) -> dict[str, Any]:
        minute = get_owned_or_404(db, Minute, minute_id, principal, "Minute")
        return MinuteService._detail(db, minute)

    @staticmethod
    def _detail(db: Session, minute: Minute) -> dict[str, Any]:
        attendees = db.execute(
            select(MinuteAttendee)
            .where(MinuteAttendee.minute_id == minute.id)
            .order_by(MinuteAttendee.id)
        ).scalars().all()
        motions = db.execute(
            select(Motion).where(Motion.minute_id == minute.id).order_by(Motion.order_num)
        ).scalars().all()

        voters_by_motion: dict[int, list[MotionVoter]] = defaultdict(list)
        if motions:
            for voter in db.execute(
                select(MotionVoter)
                .where(MotionVoter.motion_id.in_([m.id for m in motions]))
                .order_by(MotionVoter.id)
            ).scalars():
                voters_by_motion[voter.motion_id].append(voter)

        member_ids = {a.member_id for a in attendees} | {
            v.member_id for voters in voters_by_motion.values() for v in voters
        }
        members = _members_by_id(db, member_ids)

        return {
            "minute": minute,
            "attendees": [
                {"id": a.id, "member_id": a.member_id, "member": members.get(a.member_id)}
                for a in attendees
            ],
            "motions": [
                {
                    "id": motion.id,
                    "title": motion.title,
                    "description": motion.description,
                    "result": motion.result,
                    "order_num": motion.order_num,
                    "voters": [
                        {
                            "id": v.id,
                            "member_id": v.member_id,
                            "vote_type": v.vote_type,
                            "member": members.get(v.member_id),
                        }
                        for v in voters_by_motion.get(motion.id, [])
                    ],
                }
                for motion in motions
            ],
            "files": _files_by_minute(db, [minute.id]).get(minute.id, []),
        }

    @staticmethod
    def create_minute(
        db: Session, principal: Principal, data: MinuteCreateRequest
    ) -> dict[str, Any]:
        """Create a minute with its attendees, motions and voters in one commit."""
        church_id = resolve_church_id(principal, data.church_id)
        if db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)

        attendee_ids = list(dict.fromkeys(data.attendee_ids))
        voter_ids = {v.member_id for m in data.motions for v in m.voters}
        _check_members(db, church_id, set(attendee_ids) | voter_ids)

        minute = Minute(
            church_id=church_id,
            title=data.title,
            objective=data.objective,
            meeting_date=data.meeting_date,
            created_by=principal.id,
        )
        db.add(minute)
        db.flush()

        db.add_all(MinuteAttendee(minute_id=minute.id, member_id=mid) for mid in attendee_ids)
        for index, motion_data in enumerate(data.motions, start=1):
            motion = Motion(
                minute_id=minute.id,
                title=motion_data.title,
                description=motion_data.description,
                result=motion_data.result or "Pendiente",
                order_num=index,
            )
            db.add(motion)
            db.flush()
            db.add_all(
                MotionVoter(motion_id=motion.id, member_id=v.member_id, vote_type=v.vote_type)
                for v in motion_data.voters
            )

        db.commit()
        db.refresh(minute)
        logger.info(
            f"Created minute {minute.id} in church {church_id} with "
            f"{len(attendee_ids)} attendees and {len(data.motions)} motions"
        )
        return MinuteService._detail(db, minute)

    @staticmethod
    def update_minute(
        db: Session, principal: Principal, minute_id: int, data: MinuteUpdateRequest
    ) -> Minute:
        """Only title, objective and meeting_date are editable."""
        minute = get_owned_or_404(db, Minute, minute_id, principal, "Minute")
        fields = data.model_dump(exclude_unset=True)
        if fields.get("title"):
            minute.title = fields["title"]
        if "objective" in fields:
            minute.objective = fields["objective"]
        if fields.get("meeting_date"):
            minute.meeting_date = fields["meeting_date"]
        db.commit()
        db.refresh(minute)
        return minute

    @staticmethod
    def delete_minute(db: Session, principal: Principal, minute_id: int) -> None:
        minute = get_owned_or_404(db, Minute, minute_id, principal, "Minute")

        files = db.execute(
            select(MinuteFile).where(MinuteFile.minute_id == minute.id)
        ).scalars().all()
        urls = {f.file_url for f in files}
        if minute.file_url:
            urls.add(minute.file_url)

        motion_ids = select(Motion.id).where(Motion.minute_id == minute.id)
        db.execute(delete(MotionVoter).where(MotionVoter.motion_id.in_(motion_ids)))
        db.execute(delete(Motion).where(Motion.minute_id == minute.id))
        db.execute(delete(MinuteAttendee).where(MinuteAttendee.minute_id == minute.id))
        db.execute(delete(MinuteFile).where(MinuteFile.minute_id == minute.id))
        db.delete(minute)
        db.commit()
        logger.info(f"Deleted minute {minute_id} and {len(files)} files")

        for url in urls:
            uploads.remove_upload(url)

    @staticmethod
    def add_files(
        db: Session, principal: Principal, minute_id: int, files: list[UploadFile]
    ) -> list[MinuteFile]:
        minute = get_owned_or_404(db, Minute, minute_id, principal, "Minute")
        if not files:
            raise BadRequestError("No files were uploaded")
        for upload in files:
            uploads.check_extension(
                upload,
                ALLOWED_EXTENSIONS,
                ALLOWED_CONTENT_TYPES,
                "Only PDF, DOC, DOCX, JPG or PNG files are allowed",
            )

        stored: list[MinuteFile] = []
        saved_urls: list[str] = []
        try:
            for upload in files:
                url, size = uploads.save_upload(
                    upload,
                    UPLOAD_SUBDIR,
                    uploads.unique_name("acta", upload.filename),
                    settings.max_minute_file_bytes,
                )
                saved_urls.append(url)
                record = MinuteFile(
                    minute_id=minute.id,
                    file_url=url,
                    original_name=upload.filename,
                    file_size=size,
                    file_type=upload.content_type,
                )
                db.add(record)
                stored.append(record)

            if not minute.file_url and stored:
                minute.file_url = stored[0].file_url
            db.commit()
        except Exception:
            db.rollback()
            for url in saved_urls:
                uploads.remove_upload(url)
            raise

        for record in stored:
            db.refresh(record)
        logger.info(f"Attached {len(stored)} files to minute {minute_id}")
        return stored

    @staticmethod
    def delete_file(db: Session, principal: Principal, minute_id: int, file_id: int) -> None:
        minute = get_owned_or_404(db, Minute, minute_id, principal, "Minute")
        record = db.get(MinuteFile, file_id)
        if record is None or record.minute_id != minute.id:
            raise NotFoundError("Minute file", file_id)

        url = record.file_url
        db.delete(record)
        if minute.file_url == url:
            replacement = db.execute(
                select(MinuteFile.file_url)
                .where(MinuteFile.minute_id == minute.id, MinuteFile.id != file_id)
                .order_by(MinuteFile.id)
            ).scalars().first()
            minute.file_url = replacement
        db.commit()
        uploads.remove_upload(url)
        logger.info(f"Removed file {file_id} from minute {minute_id}")
