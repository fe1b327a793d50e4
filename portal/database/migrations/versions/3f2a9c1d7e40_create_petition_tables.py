"""Create users, petitions, verification steps and drafts

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f2a9c1d7e40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("national_id", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=200), nullable=False),
        sa.Column("profile_pic_url", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("role_description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("national_id"),
    )

    op.create_table(
        "submitted_petitions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("submitted_by_user_id", sa.String(length=36), nullable=False),
        sa.Column("petition_form_url", sa.Text(), nullable=False),
        sa.Column("subject_matter", sa.Text(), nullable=False),
        sa.Column("sources", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["submitted_by_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_submitted_petitions_submitted_by_user_id", "submitted_petitions", ["submitted_by_user_id"])
    op.create_index("ix_submitted_petitions_status", "submitted_petitions", ["status"])

    op.create_table(
        "verification_steps",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("petition_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True, server_default=""),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["petition_id"], ["submitted_petitions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_verification_steps_petition_id", "verification_steps", ["petition_id"])

    op.create_table(
        "petition_drafts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_user_id", sa.String(length=36), nullable=False),
        sa.Column("petition_form_url", sa.Text(), nullable=True),
        sa.Column("subject_matter", sa.Text(), nullable=True),
        sa.Column("sources", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_petition_drafts_owner_user_id", "petition_drafts", ["owner_user_id"])


def downgrade():
    op.drop_index("ix_petition_drafts_owner_user_id", table_name="petition_drafts")
    op.drop_table("petition_drafts")
    op.drop_index("ix_verification_steps_petition_id", table_name="verification_steps")
    op.drop_table("verification_steps")
    op.drop_index("ix_submitted_petitions_status", table_name="submitted_petitions")
    op.drop_index("ix_submitted_petitions_submitted_by_user_id", table_name="submitted_petitions")
    op.drop_table("submitted_petitions")
    op.drop_table("users")
