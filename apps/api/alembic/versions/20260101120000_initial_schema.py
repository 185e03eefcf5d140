"""initial schema

Revision ID: 20260101120000
Revises:
Create Date: 2026-01-01 12:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20260101120000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUM_NAMES = (
    "member_sex",
    "member_type",
    "motion_result",
    "vote_type",
    "stats_task_kind",
    "stats_task_state",
)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=True)]
    if updated:
        columns.append(sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    """Create the church management tables."""
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_roles")),
        sa.UniqueConstraint("name", name=op.f("uq_roles_name")),
    )

    op.create_table(
        "churches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("responsible", sa.String(length=200), nullable=True),
        sa.Column("login_title", sa.String(length=200), nullable=True),
        sa.Column("login_logo_url", sa.String(length=500), nullable=True),
        sa.Column("notification_day_before_hour", sa.Integer(), nullable=True),
        sa.Column("notification_same_day_hour", sa.Integer(), nullable=True),
        sa.Column("membership_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_weekly_attendance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("faith_decisions_year", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("faith_decisions_ref_year", sa.Integer(), nullable=True),
        sa.Column("ordained_preachers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unordained_preachers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ordained_deacons", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unordained_deacons", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_churches")),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"], name=op.f("fk_users_role_id_roles")
        ),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_users_church_id_churches"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_users_role_id"), "users", ["role_id"])
    op.create_index(op.f("ix_users_church_id"), "users", ["church_id"])

    op.create_table(
        "password_reset_codes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("code_hash", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("used_at", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_password_reset_codes")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_password_reset_codes_user_id_users"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_password_reset_codes_user_id"), "password_reset_codes", ["user_id"])

    op.create_table(
        "ministerial_positions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ministerial_positions")),
        sa.UniqueConstraint("church_id", "name", name="uq_ministerial_positions_church_name"),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_ministerial_positions_church_id_churches"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        op.f("ix_ministerial_positions_church_id"), "ministerial_positions", ["church_id"]
    )

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("sex", sa.Enum("M", "F", name="member_sex"), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("baptized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "member_type",
            sa.Enum("Miembro", "Visitante", "Familiar", "Infante", "Otro", name="member_type"),
            nullable=False,
            server_default="Miembro",
        ),
        sa.Column("church_role", sa.String(length=100), nullable=True),
        sa.Column("position_id", sa.Integer(), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_members")),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_members_church_id_churches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["position_id"],
            ["ministerial_positions.id"],
            name=op.f("fk_members_position_id_ministerial_positions"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_members_church_id"), "members", ["church_id"])
    op.create_index(op.f("ix_members_church_role"), "members", ["church_role"])

    op.create_table(
        "white_fields",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("responsible_id", sa.Integer(), nullable=True),
        sa.Column("responsible_name", sa.String(length=200), nullable=True),
        sa.Column("responsible_phone", sa.String(length=30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_white_fields")),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_white_fields_church_id_churches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["responsible_id"],
            ["members.id"],
            name=op.f("fk_white_fields_responsible_id_members"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_white_fields_church_id"), "white_fields", ["church_id"])

    op.create_table(
        "missions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("responsible_id", sa.Integer(), nullable=True),
        sa.Column("responsible_name", sa.String(length=200), nullable=True),
        sa.Column("responsible_phone", sa.String(length=30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_missions")),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_missions_church_id_churches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["responsible_id"],
            ["members.id"],
            name=op.f("fk_missions_responsible_id_members"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_missions_church_id"), "missions", ["church_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(length=100), nullable=False, server_default="General"),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("preacher_id", sa.Integer(), nullable=True),
        sa.Column("worship_leader_id", sa.Integer(), nullable=True),
        sa.Column("singer_id", sa.Integer(), nullable=True),
        sa.Column("attendees_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("faith_decisions", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_events")),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_events_church_id_churches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name=op.f("fk_events_created_by_users"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["preacher_id"],
            ["members.id"],
            name=op.f("fk_events_preacher_id_members"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["worship_leader_id"],
            ["members.id"],
            name=op.f("fk_events_worship_leader_id_members"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["singer_id"],
            ["members.id"],
            name=op.f("fk_events_singer_id_members"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_events_church_id"), "events", ["church_id"])
    op.create_index(op.f("ix_events_start_date"), "events", ["start_date"])

    op.create_table(
        "event_attendees",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("attended", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("made_faith_decision", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_attendees")),
        sa.UniqueConstraint("event_id", "member_id", name="uq_event_attendees_event_member"),
        sa.ForeignKeyConstraint(
            ["event_id"],
            ["events.id"],
            name=op.f("fk_event_attendees_event_id_events"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name=op.f("fk_event_attendees_member_id_members"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_event_attendees_event_id"), "event_attendees", ["event_id"])
    op.create_index(op.f("ix_event_attendees_member_id"), "event_attendees", ["member_id"])

    op.create_table(
        "weekly_attendance",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("week_date", sa.Date(), nullable=False),
        sa.Column("attendance_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_weekly_attendance")),
        sa.UniqueConstraint("church_id", "week_date", name="uq_weekly_attendance_church_week"),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_weekly_attendance_church_id_churches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name=op.f("fk_weekly_attendance_created_by_users"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_weekly_attendance_church_id"), "weekly_attendance", ["church_id"])

    op.create_table(
        "minutes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("objective", sa.Text(), nullable=True),
        sa.Column("meeting_date", sa.Date(), nullable=False),
        sa.Column("file_url", sa.String(length=500), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_minutes")),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_minutes_church_id_churches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name=op.f("fk_minutes_created_by_users"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_minutes_church_id"), "minutes", ["church_id"])

    op.create_table(
        "minute_attendees",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("minute_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_minute_attendees")),
        sa.UniqueConstraint("minute_id", "member_id", name="uq_minute_attendees_minute_member"),
        sa.ForeignKeyConstraint(
            ["minute_id"],
            ["minutes.id"],
            name=op.f("fk_minute_attendees_minute_id_minutes"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name=op.f("fk_minute_attendees_member_id_members"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_minute_attendees_minute_id"), "minute_attendees", ["minute_id"])

    op.create_table(
        "minute_files",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("minute_id", sa.Integer(), nullable=False),
        sa.Column("file_url", sa.String(length=500), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("file_type", sa.String(length=100), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_minute_files")),
        sa.ForeignKeyConstraint(
            ["minute_id"],
            ["minutes.id"],
            name=op.f("fk_minute_files_minute_id_minutes"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_minute_files_minute_id"), "minute_files", ["minute_id"])

    op.create_table(
        "motions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("minute_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "result",
            sa.Enum("Aprobado", "Rechazado", "Pendiente", name="motion_result"),
            nullable=False,
            server_default="Pendiente",
        ),
        sa.Column("order_num", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_motions")),
        sa.ForeignKeyConstraint(
            ["minute_id"],
            ["minutes.id"],
            name=op.f("fk_motions_minute_id_minutes"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_motions_minute_id"), "motions", ["minute_id"])

    op.create_table(
        "motion_voters",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("motion_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column(
            "vote_type",
            sa.Enum("Votante", "Secundador", name="vote_type"),
            nullable=False,
            server_default="Votante",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_motion_voters")),
        sa.ForeignKeyConstraint(
            ["motion_id"],
            ["motions.id"],
            name=op.f("fk_motion_voters_motion_id_motions"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name=op.f("fk_motion_voters_member_id_members"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_motion_voters_motion_id"), "motion_voters", ["motion_id"])

    op.create_table(
        "stats_recalc_tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(
                "membership_count",
                "role_counts",
                "avg_weekly_attendance",
                "faith_decisions",
                name="stats_task_kind",
            ),
            nullable=False,
        ),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column(
            "state",
            sa.Enum("pending", "done", "failed", name="stats_task_state"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.String(length=500), nullable=True),
        *_timestamps(updated=False),
        sa.Column("processed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_stats_recalc_tasks")),
        sa.ForeignKeyConstraint(
            ["church_id"],
            ["churches.id"],
            name=op.f("fk_stats_recalc_tasks_church_id_churches"),
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_stats_recalc_tasks_state_created", "stats_recalc_tasks", ["state", "created_at"]
    )


def downgrade() -> None:
    """Drop every table and enum type."""
    for table in (
        "stats_recalc_tasks",
        "motion_voters",
        "motions",
        "minute_files",
        "minute_attendees",
        "minutes",
        "weekly_attendance",
        "event_attendees",
        "events",
        "missions",
        "white_fields",
        "members",
        "ministerial_positions",
        "password_reset_codes",
        "users",
        "churches",
        "roles",
    ):
        op.drop_table(table)

    for enum_name in ENUM_NAMES:
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
