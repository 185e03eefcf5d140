"""Meeting minutes (actas) with motions, voters, attendees and files."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    String,
    Date,
    ForeignKey,
    Integer,
    TIMESTAMP,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.common.models.base import Base, MotionResult, VoteType, utcnow


class Minute(Base):
    __tablename__ = "minutes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    objective: Mapped[Optional[str]] = mapped_column(Text)
    meeting_date: Mapped[date] = mapped_column(Date, nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )


class MinuteAttendee(Base):
    __tablename__ = "minute_attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    minute_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("minutes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("minute_id", "member_id", name="uq_minute_attendees_minute_member"),
    )


class MinuteFile(Base):
    __tablename__ = "minute_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    minute_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("minutes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    original_name: Mapped[Optional[str]] = mapped_column(String(255))
    file_size: Mapped[Optional[int]] = mapped_column(Integer)
    file_type: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )


class Motion(Base):
    __tablename__ = "motions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    minute_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("minutes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    result: Mapped[str] = mapped_column(MotionResult, nullable=False, default="Pendiente")
    order_num: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class MotionVoter(Base):
    __tablename__ = "motion_voters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    motion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("motions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    vote_type: Mapped[str] = mapped_column(VoteType, nullable=False, default="Votante")
