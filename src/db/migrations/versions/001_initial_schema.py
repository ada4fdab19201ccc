"""Initial schema: accounts, workspaces, courses, tasks, invites, audit log.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(name=name, create_type=False)


def upgrade() -> None:
    # =========================================================================
    # EXTENSIONS
    # =========================================================================
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # =========================================================================
    # ENUM TYPES
    # =========================================================================
    op.execute("CREATE TYPE workspace_role AS ENUM ('Owner', 'Member')")
    op.execute("CREATE TYPE course_role AS ENUM ('Manager', 'Expert', 'Participant')")
    op.execute("CREATE TYPE course_status AS ENUM ('draft', 'active', 'completed')")
    op.execute("CREATE TYPE team_role AS ENUM ('CEO', 'CPO', 'CMO', 'COO', 'CTO', 'CFO')")
    op.execute("CREATE TYPE invite_scope AS ENUM ('workspace', 'course')")
    op.execute("CREATE TYPE task_status AS ENUM ('Todo', 'Doing', 'Review', 'Done')")
    op.execute("CREATE TYPE tab_type AS ENUM ('guide', 'prompt', 'product')")

    # =========================================================================
    # TABLE 1: account
    # =========================================================================
    op.create_table(
        "account",
        _id(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("nick_name", sa.Text(), nullable=False),
        sa.Column("real_name", sa.Text(), nullable=False),
        sa.Column("profile_image", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column("is_system_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "failed_attempt_count", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_account_email"),
        sa.UniqueConstraint("nick_name", name="uq_account_nick_name"),
        sa.CheckConstraint(
            "failed_attempt_count >= 0",
            name="ck_account_failed_attempt_count_non_negative",
        ),
    )
    op.create_index("idx_account_email_lower", "account", [sa.text("lower(email)")])

    # =========================================================================
    # TABLE 2: workspace
    # =========================================================================
    op.create_table(
        "workspace",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_image", sa.Text(), nullable=True),
        sa.Column(
            "owner_id",
            sa.Uuid(),
            sa.ForeignKey("account.id", name="fk_workspace_owner_id_account"),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_workspace_name"),
    )

    # =========================================================================
    # TABLE 3: workspace_membership
    # =========================================================================
    op.create_table(
        "workspace_membership",
        _id(),
        sa.Column(
            "workspace_id",
            sa.Uuid(),
            sa.ForeignKey("workspace.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey("account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", _enum("workspace_role"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("workspace_id", "account_id", name="uq_workspace_membership"),
    )
    op.create_index("idx_workspace_membership_account", "workspace_membership", ["account_id"])

    # =========================================================================
    # TABLE 4: course
    # =========================================================================
    op.create_table(
        "course",
        _id(),
        sa.Column(
            "workspace_id",
            sa.Uuid(),
            sa.ForeignKey("workspace.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status", _enum("course_status"), nullable=False, server_default=sa.text("'draft'")
        ),
        *_timestamps(),
    )
    op.create_index("idx_course_workspace", "course", ["workspace_id"])

    # =========================================================================
    # TABLE 5: course_membership
    # =========================================================================
    op.create_table(
        "course_membership",
        _id(),
        sa.Column(
            "course_id",
            sa.Uuid(),
            sa.ForeignKey("course.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey("account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", _enum("course_role"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("course_id", "account_id", name="uq_course_membership"),
    )
    op.create_index("idx_course_membership_account", "course_membership", ["account_id"])

    # =========================================================================
    # TABLE 6: module
    # =========================================================================
    op.create_table(
        "module",
        _id(),
        sa.Column(
            "course_id",
            sa.Uuid(),
            sa.ForeignKey("course.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )

    # =========================================================================
    # TABLE 7: team
    # =========================================================================
    op.create_table(
        "team",
        _id(),
        sa.Column(
            "course_id",
            sa.Uuid(),
            sa.ForeignKey("course.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # =========================================================================
    # TABLE 8: team_membership
    # =========================================================================
    op.create_table(
        "team_membership",
        _id(),
        sa.Column(
            "team_id",
            sa.Uuid(),
            sa.ForeignKey("team.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "account_id",
            sa.Uuid(),
            sa.ForeignKey("account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", _enum("team_role"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("team_id", "account_id", name="uq_team_membership"),
    )

    # =========================================================================
    # TABLE 9: invite_token
    # =========================================================================
    op.create_table(
        "invite_token",
        _id(),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("scope", _enum("invite_scope"), nullable=False),
        sa.Column(
            "workspace_id",
            sa.Uuid(),
            sa.ForeignKey("workspace.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "course_id",
            sa.Uuid(),
            sa.ForeignKey("course.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("account.id"), nullable=True),
        sa.Column("max_uses", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.UniqueConstraint("token", name="uq_invite_token_token"),
        sa.CheckConstraint("used_count >= 0", name="ck_invite_token_used_count_non_negative"),
        sa.CheckConstraint("used_count <= max_uses", name="ck_invite_token_used_count_within_cap"),
        sa.CheckConstraint(
            "(workspace_id IS NOT NULL AND course_id IS NULL AND scope = 'workspace') OR "
            "(course_id IS NOT NULL AND workspace_id IS NULL AND scope = 'course')",
            name="ck_invite_token_single_scope",
        ),
    )

    # =========================================================================
    # TABLE 10: task
    # =========================================================================
    op.create_table(
        "task",
        _id(),
        sa.Column(
            "module_id",
            sa.Uuid(),
            sa.ForeignKey("module.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "course_id",
            sa.Uuid(),
            sa.ForeignKey("course.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("guide_content", sa.Text(), nullable=True),
        sa.Column(
            "status", _enum("task_status"), nullable=False, server_default=sa.text("'Todo'")
        ),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("assignee_role", sa.Text(), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_task_course_status", "task", ["course_id", "status"])
    op.create_index("idx_task_module", "task", ["module_id"])

    # =========================================================================
    # TABLE 11: product
    # =========================================================================
    op.create_table(
        "product",
        _id(),
        sa.Column(
            "task_id",
            sa.Uuid(),
            sa.ForeignKey("task.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("current_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("last_editor_id", sa.Uuid(), sa.ForeignKey("account.id"), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_result", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("task_id", name="uq_product_task_id"),
        sa.CheckConstraint("current_version >= 1", name="ck_product_current_version_positive"),
    )

    # =========================================================================
    # TABLE 12: product_version
    # =========================================================================
    op.create_table(
        "product_version",
        _id(),
        sa.Column(
            "product_id",
            sa.Uuid(),
            sa.ForeignKey("product.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("editor_id", sa.Uuid(), sa.ForeignKey("account.id"), nullable=True),
        _created_at(),
        sa.UniqueConstraint("product_id", "version_number", name="uq_product_version_number"),
    )

    # =========================================================================
    # TABLE 13: comment
    # =========================================================================
    op.create_table(
        "comment",
        _id(),
        sa.Column(
            "task_id",
            sa.Uuid(),
            sa.ForeignKey("task.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("tab_type", _enum("tab_type"), nullable=False),
        sa.Column("prompt_account_id", sa.Uuid(), sa.ForeignKey("account.id"), nullable=True),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("account.id"), nullable=False),
        sa.Column(
            "parent_id",
            sa.Uuid(),
            sa.ForeignKey("comment.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("idx_comment_task_tab", "comment", ["task_id", "tab_type"])

    # =========================================================================
    # TABLE 14: prompt
    # =========================================================================
    op.create_table(
        "prompt",
        _id(),
        sa.Column(
            "task_id",
            sa.Uuid(),
            sa.ForeignKey("task.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("account_id", sa.Uuid(), sa.ForeignKey("account.id"), nullable=False),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("ai_response", sa.Text(), nullable=False),
        sa.Column("ai_model", sa.Text(), nullable=False),
        sa.Column("tokens_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("evaluation", postgresql.JSONB(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_prompt_task_account", "prompt", ["task_id", "account_id", "created_at"])

    # =========================================================================
    # TABLE 15: audit_log
    # =========================================================================
    op.create_table(
        "audit_log",
        _id(),
        sa.Column("account_id", sa.Uuid(), sa.ForeignKey("account.id"), nullable=True),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("resource_type", sa.Text(), nullable=False),
        sa.Column("resource_id", sa.Uuid(), nullable=True),
        sa.Column("changes", postgresql.JSONB(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_audit_log_resource", "audit_log", ["resource_type", "resource_id"])


def downgrade() -> None:
    for table in (
        "audit_log",
        "prompt",
        "comment",
        "product_version",
        "product",
        "task",
        "invite_token",
        "team_membership",
        "team",
        "module",
        "course_membership",
        "course",
        "workspace_membership",
        "workspace",
        "account",
    ):
        op.drop_table(table)

    for enum_name in (
        "tab_type",
        "task_status",
        "invite_scope",
        "team_role",
        "course_role",
        "course_status",
        "workspace_role",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
