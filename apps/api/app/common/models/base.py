"""Base classes and enums shared across all models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Enum, MetaData
from sqlalchemy.orm import DeclarativeBase


NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = metadata


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Member enums
Sex = Enum("M", "F", name="member_sex")
MemberType = Enum(
    "Miembro", "Visitante", "Familiar", "Infante", "Otro", name="member_type"
)

# Minutes enums
MotionResult = Enum("Aprobado", "Rechazado", "Pendiente", name="motion_result")
VoteType = Enum("Votante", "Secundador", name="vote_type")

# Stats outbox enums
StatsTaskKind = Enum(
    "membership_count",
    "role_counts",
    "avg_weekly_attendance",
    "faith_decisions",
    name="stats_task_kind",
)
StatsTaskState = Enum("pending", "done", "failed", name="stats_task_state")
