"""Models package - re-exports every model so that imports like
``from app.common.models import Member, Base`` keep working.

Models are organized into:
- base: Base class, metadata and enums
- iam: users, roles, password reset codes
- church: churches, ministerial positions, white fields, missions
- members: church members
- events: events, attendance rolls, weekly attendance
- minutes: minutes, motions, voters, attendees, files
- outbox: deferred statistics recalculation tasks
"""

from __future__ import annotations

from app.common.models.base import (
    Base,
    metadata,
    NAMING_CONVENTION,
    utcnow,
    Sex,
    MemberType,
    MotionResult,
    VoteType,
    StatsTaskKind,
    StatsTaskState,
)

from app.common.models.iam import (
    Role,
    User,
    PasswordResetCode,
)

from app.common.models.church import (
    DERIVED_CHURCH_FIELDS,
    Church,
    MinisterialPosition,
    WhiteField,
    Mission,
)

from app.common.models.members import Member

from app.common.models.events import (
    CULTO,
    VENTAS,
    Event,
    EventAttendee,
    WeeklyAttendance,
)

from app.common.models.minutes import (
    Minute,
    MinuteAttendee,
    MinuteFile,
    Motion,
    MotionVoter,
)

from app.common.models.outbox import StatsRecalcTask

__all__ = [
    # Base
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "utcnow",
    # Enums
    "Sex",
    "MemberType",
    "MotionResult",
    "VoteType",
    "StatsTaskKind",
    "StatsTaskState",
    # IAM
    "Role",
    "User",
    "PasswordResetCode",
    # Church
    "DERIVED_CHURCH_FIELDS",
    "Church",
    "MinisterialPosition",
    "WhiteField",
    "Mission",
    # Members
    "Member",
    # Events
    "CULTO",
    "VENTAS",
    "Event",
    "EventAttendee",
    "WeeklyAttendance",
    # Minutes
    "Minute",
    "MinuteAttendee",
    "MinuteFile",
    "Motion",
    "MotionVoter",
    # Outbox
    "StatsRecalcTask",
]
