"""Churches and their per-tenant catalogs."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    TIMESTAMP,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.common.models.base import Base, utcnow

# Church columns owned by the stats recalculator
DERIVED_CHURCH_FIELDS = (
    "membership_count",
    "avg_weekly_attendance",
    "faith_decisions_year",
    "faith_decisions_ref_year",
    "ordained_preachers",
    "unordained_preachers",
    "ordained_deacons",
    "unordained_deacons",
)


class Church(Base):
    __tablename__ = "churches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    logo_url: Mapped[Optional[str]] = mapped_column(String(500))
    responsible: Mapped[Optional[str]] = mapped_column(String(200))

    # Login screen branding
    login_title: Mapped[Optional[str]] = mapped_column(String(200))
    login_logo_url: Mapped[Optional[str]] = mapped_column(String(500))

    # WhatsApp reminder schedule, local hour 0-23
    notification_day_before_hour: Mapped[Optional[int]] = mapped_column(Integer)
    notification_same_day_hour: Mapped[Optional[int]] = mapped_column(Integer)

    membership_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_weekly_attendance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    faith_decisions_year: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    faith_decisions_ref_year: Mapped[Optional[int]] = mapped_column(Integer)
    ordained_preachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unordained_preachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ordained_deacons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unordained_deacons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )


class MinisterialPosition(Base):
    """Per-church catalog of ministerial positions (cargos)."""

    __tablename__ = "ministerial_positions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("church_id", "name", name="uq_ministerial_positions_church_name"),
    )


class WhiteField(Base):
    """Outreach site ("campo blanco") run by a church."""

    __tablename__ = "white_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    responsible_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL")
    )
    # Free-text responsible for people who are not registered members
    responsible_name: Mapped[Optional[str]] = mapped_column(String(200))
    responsible_phone: Mapped[Optional[str]] = mapped_column(String(30))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )


class Mission(Base):
    """Mission ("misión") sponsored by a church."""

    __tablename__ = "missions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    responsible_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL")
    )
    responsible_name: Mapped[Optional[str]] = mapped_column(String(200))
    responsible_phone: Mapped[Optional[str]] = mapped_column(String(30))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
