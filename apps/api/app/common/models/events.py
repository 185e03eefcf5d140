"""Events, attendance rolls and weekly attendance."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    TIMESTAMP,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.common.models.base import Base, utcnow

CULTO = "Culto"
VENTAS = "Ventas"


class Event(Base):
    """A church event.

    start_date/end_date are naive wall-clock times in the church's local
    timezone; the faith-decision year and the calendar PDFs read them as-is.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    location: Mapped[Optional[str]] = mapped_column(String(300))
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL")
    )

    # Culto role assignments
    preacher_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL")
    )
    worship_leader_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL")
    )
    singer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL")
    )

    # Recomputed from the roster on every roster replace
    attendees_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    faith_decisions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )


class EventAttendee(Base):
    __tablename__ = "event_attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    made_faith_decision: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("event_id", "member_id", name="uq_event_attendees_event_member"),
    )


class WeeklyAttendance(Base):
    __tablename__ = "weekly_attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    week_date: Mapped[date] = mapped_column(Date, nullable=False)
    attendance_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("church_id", "week_date", name="uq_weekly_attendance_church_week"),
    )
