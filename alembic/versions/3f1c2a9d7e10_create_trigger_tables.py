"""create_trigger_tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3f1c2a9d7e10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "project_trigger",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("project_url", sa.String(length=512), nullable=True),
        sa.Column("admin_list", sa.Text(), nullable=False),
        sa.Column("whitelist", sa.Text(), nullable=False),
        sa.Column("orgs_list", sa.Text(), nullable=False),
        sa.Column("use_github_hooks", sa.Boolean(), nullable=False),
        sa.Column("permit_all", sa.Boolean(), nullable=False),
        sa.Column("build_workflow", sa.String(length=255), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_project_trigger_id"), "project_trigger", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_project_trigger_project_name"),
        "project_trigger",
        ["project_name"],
        unique=True,
    )
    op.create_index(
        op.f("ix_project_trigger_enabled"),
        "project_trigger",
        ["enabled"],
        unique=False,
    )

    op.create_table(
        "tracked_pull_request",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("head_sha", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("accepted", sa.Boolean(), nullable=False),
        sa.Column("testing_requested", sa.Boolean(), nullable=False),
        sa.Column("comments_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_built_sha", sa.String(length=64), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_name", "number"),
    )
    op.create_index(
        op.f("ix_tracked_pull_request_id"),
        "tracked_pull_request",
        ["id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_tracked_pull_request_project_name"),
        "tracked_pull_request",
        ["project_name"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_tracked_pull_request_project_name"),
        table_name="tracked_pull_request",
    )
    op.drop_index(
        op.f("ix_tracked_pull_request_id"), table_name="tracked_pull_request"
    )
    op.drop_table("tracked_pull_request")
    op.drop_index(op.f("ix_project_trigger_enabled"), table_name="project_trigger")
    op.drop_index(
        op.f("ix_project_trigger_project_name"), table_name="project_trigger"
    )
    op.drop_index(op.f("ix_project_trigger_id"), table_name="project_trigger")
    op.drop_table("project_trigger")
