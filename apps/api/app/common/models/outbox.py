"""Outbox rows for deferred church statistics recalculation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    ForeignKey,
    Index,
    Integer,
    TIMESTAMP,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.common.models.base import Base, StatsTaskKind, StatsTaskState, utcnow


class StatsRecalcTask(Base):
    __tablename__ = "stats_recalc_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(StatsTaskKind, nullable=False)
    # Reference year for faith_decisions tasks
    year: Mapped[Optional[int]] = mapped_column(Integer)
    state: Mapped[str] = mapped_column(StatsTaskState, nullable=False, default="pending")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))

    __table_args__ = (
        Index("ix_stats_recalc_tasks_state_created", "state", "created_at"),
    )
