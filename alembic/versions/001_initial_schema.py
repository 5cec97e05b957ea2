"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2026-10-01 00:00:00.000000+00:00

What:  Creates every table of the case-management backend: accounts and
       applicant profiles, the seven document tables, per-role inboxes,
       events with reads/attendees/ratings, child requests, ID cards,
       announcements and export counters.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DOCUMENT_TABLES = (
    "psa_documents",
    "itr_documents",
    "med_cert_documents",
    "marriage_documents",
    "cenomar_documents",
    "death_cert_documents",
    "barangay_cert_documents",
)

# Tables with (id, user_id, <text column>, <timestamp column>, is_read).
USER_INBOX_TABLES = (
    ("accepted_users", "message", "accepted_at"),
    ("declined_users", "remarks", "declined_at"),
    ("terminated_users", "message", "terminated_at"),
)


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True)


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password", sa.String(255), nullable=False, comment="passlib hash"),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("code_id", sa.String(64), nullable=True, unique=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="Pending"),
        sa.Column("approval", sa.String(32), nullable=True),
        sa.Column("beneficiary_status", sa.String(32), nullable=True),
        sa.Column("resetPasswordToken", sa.String(100), nullable=True),
        sa.Column("resetPasswordExpires", sa.DateTime(), nullable=True),
        sa.Column("profilePic", sa.String(512), nullable=True),
        sa.Column("faceRecognitionPhoto", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_users_status", "users", ["status"])

    op.create_table(
        "admin",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("barangay", sa.String(128), nullable=False, unique=True),
    )
    op.create_table(
        "superadmin",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password", sa.String(255), nullable=False),
    )

    # ── Applicant Profile ─────────────────────────────────────────────────
    op.create_table(
        "step1_identifying_information",
        _id(),
        sa.Column("code_id", sa.String(64), nullable=False, unique=True),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("middle_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=False),
        sa.Column("suffix", sa.String(16), nullable=True),
        sa.Column("gender", sa.String(16), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("place_of_birth", sa.String(255), nullable=True),
        sa.Column("barangay", sa.String(128), nullable=True),
        sa.Column("civil_status", sa.String(32), nullable=True),
        sa.Column("religion", sa.String(64), nullable=True),
        sa.Column("income", sa.String(64), nullable=True),
        sa.Column("contact_number", sa.String(32), nullable=True),
    )
    op.create_index("idx_step1_barangay", "step1_identifying_information", ["barangay"])

    op.create_table(
        "step2_family_occupation",
        _id(),
        sa.Column("code_id", sa.String(64), nullable=False),
        sa.Column("family_member_name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("educational_attainment", sa.String(128), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("occupation", sa.Text(), nullable=True),
    )
    op.create_index("ix_step2_family_occupation_code_id", "step2_family_occupation", ["code_id"])

    op.create_table(
        "step3_classification",
        _id(),
        sa.Column("code_id", sa.String(64), nullable=False, unique=True),
        sa.Column("classification", sa.Text(), nullable=False),
    )

    # ── Documents ─────────────────────────────────────────────────────────
    for table in DOCUMENT_TABLES:
        op.create_table(
            table,
            _id(),
            sa.Column("code_id", sa.String(64), nullable=False),
            sa.Column("file_name", sa.String(512), nullable=False),
            sa.Column("display_name", sa.String(255), nullable=True),
            sa.Column("status", sa.String(16), nullable=False, server_default="Pending"),
            sa.Column("rejection_reason", sa.Text(), nullable=True),
            sa.Column("uploaded_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index(f"ix_{table}_code_id", table, ["code_id"], unique=True)

    # ── Inboxes ───────────────────────────────────────────────────────────
    for table, text_column, at_column in USER_INBOX_TABLES:
        op.create_table(
            table,
            _id(),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column(text_column, sa.Text(), nullable=False),
            sa.Column(at_column, sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.create_index(f"idx_{table}_user_read", table, ["user_id", "is_read"])

    op.create_table(
        "user_remarks",
        _id(),
        sa.Column("code_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=False),
        sa.Column("admin_id", sa.Integer(), nullable=True),
        sa.Column("superadmin_id", sa.Integer(), nullable=True),
        sa.Column("remarks_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("idx_user_remarks_user_read", "user_remarks", ["user_id", "is_read"])

    op.create_table(
        "follow_up_documents",
        _id(),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_follow_up_documents_user_id", "follow_up_documents", ["user_id"])

    op.create_table(
        "user_childrequest",
        _id(),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("message_accepted", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_user_childrequest_user_id", "user_childrequest", ["user_id"])

    op.create_table(
        "adminnotifications",
        _id(),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("notif_type", sa.String(64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("barangay", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_adminnotifications_barangay", "adminnotifications", ["barangay"])

    op.create_table(
        "superadminnotifications",
        _id(),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("notif_type", sa.String(64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    # ── Events ────────────────────────────────────────────────────────────
    op.create_table(
        "events",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("startDate", sa.Date(), nullable=False),
        sa.Column("startTime", sa.Time(), nullable=False),
        sa.Column("endTime", sa.Time(), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="Upcoming"),
        sa.Column("visibility", sa.String(32), nullable=False, server_default="everyone"),
        sa.Column("barangay", sa.String(128), nullable=False, server_default="All"),
        sa.Column("image", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("idx_events_start_date", "events", ["startDate"])

    op.create_table(
        "event_reads",
        _id(),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_reads_event_user"),
    )
    op.create_table(
        "attendees",
        _id(),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("code_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("attend_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_attendees_event_id", "attendees", ["event_id"])
    op.create_table(
        "event_ratings",
        _id(),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_ratings_event_user"),
    )

    # ── Records ───────────────────────────────────────────────────────────
    op.create_table(
        "newchildrequest",
        _id(),
        sa.Column("code_id", sa.String(64), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("middle_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=False),
        sa.Column("suffix", sa.String(16), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("educational_attainment", sa.String(128), nullable=False),
        sa.Column("barangay", sa.String(128), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="Pending"),
        sa.Column("requested_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_newchildrequest_code_id", "newchildrequest", ["code_id"])
    op.create_index("ix_newchildrequest_barangay", "newchildrequest", ["barangay"])

    op.create_table(
        "user_id_cards",
        _id(),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("code_id", sa.String(64), nullable=False),
        sa.Column("front_url", sa.Text(), nullable=False),
        sa.Column("back_url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_user_id_cards_user_code", "user_id_cards", ["user_id", "code_id"])

    op.create_table(
        "announcements",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("end_date", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "export_limits",
        _id(),
        sa.Column("admin_id", sa.Integer(), nullable=False, unique=True),
        sa.Column("export_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("excel_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pdf_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_export_date", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    for table in (
        "export_limits",
        "announcements",
        "user_id_cards",
        "newchildrequest",
        "event_ratings",
        "attendees",
        "event_reads",
        "events",
        "superadminnotifications",
        "adminnotifications",
        "user_childrequest",
        "follow_up_documents",
        "user_remarks",
        *(table for table, _, _ in USER_INBOX_TABLES),
        *DOCUMENT_TABLES,
        "step3_classification",
        "step2_family_occupation",
        "step1_identifying_information",
        "superadmin",
        "admin",
        "users",
    ):
        op.drop_table(table)
