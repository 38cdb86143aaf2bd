"""create users and reference directories

Revision ID: 20260301_0001
Revises: None
Create Date: 2026-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "coordinator", "teacher", "student", name="user_role")
assign_access_enum = sa.Enum("none", "own", "full", name="assign_access")
semester_system_enum = sa.Enum("Tri-Semester", "Bi-Semester", name="semester_system")
course_type_enum = sa.Enum(
    "Theory", "Lab", "Thesis", "Project", "Internship", "Viva", "Others", "N/A", name="course_type"
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("employee_id", sa.String(length=50), nullable=True),
        sa.Column("can_approve_slots", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("bulk_assign_access", assign_access_enum, nullable=False, server_default="none"),
        sa.Column("accessible_program_pids", sa.JSON(), nullable=False),
        sa.Column("day_offs", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_employee_id", "users", ["employee_id"])

    op.create_table(
        "programs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("p_id", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("short_name", sa.String(length=50), nullable=True),
        sa.Column("semester_system", semester_system_enum, nullable=False),
        sa.Column("active_days", sa.JSON(), nullable=False),
        sa.Column("program_specific_slots", sa.JSON(), nullable=False),
    )
    op.create_index("ix_programs_p_id", "programs", ["p_id"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("building_id", sa.String(length=36), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("semester_id", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="40"),
        sa.Column("assigned_to_pid", sa.String(length=50), nullable=True),
        sa.Column("shared_with_pids", sa.JSON(), nullable=False),
        sa.Column("supported_slots", sa.JSON(), nullable=False),
        sa.UniqueConstraint("semester_id", "room_number", name="uq_rooms_semester_room"),
    )
    op.create_index("ix_rooms_room_number", "rooms", ["room_number"])
    op.create_index("ix_rooms_semester_id", "rooms", ["semester_id"])

    op.create_table(
        "sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("semester_id", sa.String(length=100), nullable=False),
        sa.Column("p_id", sa.String(length=50), nullable=False),
        sa.Column("course_code", sa.String(length=50), nullable=False),
        sa.Column("course_title", sa.String(length=200), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=False),
        sa.Column("level_term", sa.String(length=20), nullable=True),
        sa.Column("teacher_id", sa.String(length=50), nullable=True),
        sa.Column("teacher_name", sa.String(length=200), nullable=True),
        sa.Column("weekly_class", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("course_type", course_type_enum, nullable=False),
        sa.Column("class_taken", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("semester_id", "p_id", "course_code", "section", name="uq_sections_identity"),
    )
    op.create_index("ix_sections_semester_id", "sections", ["semester_id"])
    op.create_index("ix_sections_p_id", "sections", ["p_id"])

    op.create_table(
        "semester_date_ranges",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("semester_id", sa.String(length=100), nullable=False),
        sa.Column("semester_system", semester_system_enum, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.UniqueConstraint("semester_id", "semester_system", name="uq_semester_date_ranges_identity"),
    )
    op.create_index("ix_semester_date_ranges_semester_id", "semester_date_ranges", ["semester_id"])


def downgrade() -> None:
    op.drop_index("ix_semester_date_ranges_semester_id", table_name="semester_date_ranges")
    op.drop_table("semester_date_ranges")
    op.drop_index("ix_sections_p_id", table_name="sections")
    op.drop_index("ix_sections_semester_id", table_name="sections")
    op.drop_table("sections")
    op.drop_index("ix_rooms_semester_id", table_name="rooms")
    op.drop_index("ix_rooms_room_number", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_programs_p_id", table_name="programs")
    op.drop_table("programs")
    op.drop_index("ix_users_employee_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in (course_type_enum, semester_system_enum, assign_access_enum, user_role_enum):
        enum.drop(bind, checkfirst=True)
