"""Church members."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    String,
    Boolean,
    Date,
    ForeignKey,
    Integer,
    TIMESTAMP,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.common.models.base import Base, MemberType, Sex, utcnow


class Member(Base):
    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer)
    sex: Mapped[Optional[str]] = mapped_column(Sex)
    birth_date: Mapped[Optional[date]] = mapped_column(Date)
    baptized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    member_type: Mapped[str] = mapped_column(MemberType, nullable=False, default="Miembro")
    # Denormalized position name; the role counters group on this column
    church_role: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    position_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("ministerial_positions.id", ondelete="SET NULL")
    )
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    email: Mapped[Optional[str]] = mapped_column(String(320))
    address: Mapped[Optional[str]] = mapped_column(Text)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow
    )
