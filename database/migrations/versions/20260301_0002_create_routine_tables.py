"""create routine, override, log, approval and attendance tables

Revision ID: 20260301_0002
Revises: 20260301_0001
Create Date: 2026-03-01 00:10:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20260301_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None


pending_change_kind_enum = sa.Enum("bulk", "override_batch", "move", name="pending_change_kind")
pending_change_status_enum = sa.Enum("open", "approved", "rejected", "cancelled", name="pending_change_status")
notification_type_enum = sa.Enum("approval", "rejection", "info", name="notification_type")
attendance_status_enum = sa.Enum(
    "running", "all_absent", "teacher_absent", "students_absent", name="attendance_status"
)


def upgrade() -> None:
    op.create_table(
        "semester_routines",
        sa.Column("semester_id", sa.String(length=100), primary_key=True, nullable=False),
        sa.Column("active_version_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "routine_versions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "semester_id",
            sa.String(length=100),
            sa.ForeignKey("semester_routines.semester_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("routine", sa.JSON(), nullable=False),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_routine_versions_semester_id", "routine_versions", ["semester_id"])
    op.create_index("ix_routine_versions_created_at", "routine_versions", ["created_at"])

    op.create_table(
        "schedule_overrides",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("slot_key", sa.String(length=40), nullable=False),
        sa.Column("override_date", sa.Date(), nullable=False),
        sa.Column("class_detail", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("room_number", "slot_key", "override_date", name="uq_schedule_overrides_cell"),
    )
    op.create_index("ix_schedule_overrides_room_number", "schedule_overrides", ["room_number"])

    op.create_table(
        "schedule_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=False),
        sa.Column("actor_name", sa.String(length=200), nullable=True),
        sa.Column("semester_id", sa.String(length=100), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("slot_key", sa.String(length=40), nullable=False),
        sa.Column("weekday", sa.String(length=10), nullable=False),
        sa.Column("is_override", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("override_date", sa.Date(), nullable=True),
        sa.Column("from_class", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("to_class", sa.JSON(none_as_null=True), nullable=True),
    )
    op.create_index("ix_schedule_log_created_at", "schedule_log", ["created_at"])
    op.create_index("ix_schedule_log_semester_id", "schedule_log", ["semester_id"])
    op.create_index("ix_schedule_log_room_number", "schedule_log", ["room_number"])

    op.create_table(
        "pending_changes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("requester_id", sa.String(length=36), nullable=False),
        sa.Column("requester_name", sa.String(length=200), nullable=True),
        sa.Column("kind", pending_change_kind_enum, nullable=False),
        sa.Column("status", pending_change_status_enum, nullable=False, server_default="open"),
        sa.Column("semester_id", sa.String(length=100), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("slot_key", sa.String(length=40), nullable=False),
        sa.Column("weekday", sa.String(length=10), nullable=False),
        sa.Column("requested_class", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("is_bulk_update", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("dates", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("source", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_pending_changes_requester_id", "pending_changes", ["requester_id"])
    op.create_index("ix_pending_changes_semester_id", "pending_changes", ["semester_id"])
    op.create_index("ix_pending_changes_created_at", "pending_changes", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type_enum, nullable=False, server_default="info"),
        sa.Column("related_change_id", sa.String(length=36), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_related_change_id", "notifications", ["related_change_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("semester_id", sa.String(length=100), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_semester_id", "activity_logs", ["semester_id"])

    op.create_table(
        "attendance_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("semester_id", sa.String(length=100), nullable=False),
        sa.Column("class_date", sa.Date(), nullable=False),
        sa.Column("slot_key", sa.String(length=40), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("p_id", sa.String(length=50), nullable=False),
        sa.Column("course_code", sa.String(length=50), nullable=False),
        sa.Column("section", sa.String(length=50), nullable=False),
        sa.Column("teacher_id", sa.String(length=50), nullable=True),
        sa.Column("status", attendance_status_enum, nullable=False),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column("makeup_date", sa.Date(), nullable=True),
        sa.Column("makeup_slot_key", sa.String(length=40), nullable=True),
        sa.Column("makeup_room_number", sa.String(length=50), nullable=True),
        sa.Column("makeup_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("logged_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_attendance_logs_semester_id", "attendance_logs", ["semester_id"])
    op.create_index("ix_attendance_logs_created_at", "attendance_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_attendance_logs_created_at", table_name="attendance_logs")
    op.drop_index("ix_attendance_logs_semester_id", table_name="attendance_logs")
    op.drop_table("attendance_logs")
    op.drop_index("ix_activity_logs_semester_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_notifications_related_change_id", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_pending_changes_created_at", table_name="pending_changes")
    op.drop_index("ix_pending_changes_semester_id", table_name="pending_changes")
    op.drop_index("ix_pending_changes_requester_id", table_name="pending_changes")
    op.drop_table("pending_changes")
    op.drop_index("ix_schedule_log_room_number", table_name="schedule_log")
    op.drop_index("ix_schedule_log_semester_id", table_name="schedule_log")
    op.drop_index("ix_schedule_log_created_at", table_name="schedule_log")
    op.drop_table("schedule_log")
    op.drop_index("ix_schedule_overrides_room_number", table_name="schedule_overrides")
    op.drop_table("schedule_overrides")
    op.drop_index("ix_routine_versions_created_at", table_name="routine_versions")
    op.drop_index("ix_routine_versions_semester_id", table_name="routine_versions")
    op.drop_table("routine_versions")
    op.drop_table("semester_routines")
    bind = op.get_bind()
    for enum in (
        attendance_status_enum,
        notification_type_enum,
        pending_change_status_enum,
        pending_change_kind_enum,
    ):
        enum.drop(bind, checkfirst=True)
