"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

UPDATED_AT_TABLES = ["users", "refresh_tokens", "columns", "tasks", "comments", "checklists", "app_settings"]


def _ts(name: str, nullable: bool = False) -> sa.Column:
  return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, server_default=sa.func.current_timestamp())


def upgrade() -> None:
  op.create_table(
    "users",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("username", sa.String(20), nullable=False),
    sa.Column("password_hash", sa.String(), nullable=False),
    sa.Column("name", sa.String(100), nullable=True),
    sa.Column("designation", sa.String(100), nullable=True),
    sa.Column("is_root", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    _ts("created_at"),
    _ts("updated_at"),
  )
  op.create_index("ix_users_username", "users", ["username"], unique=True)

  op.create_table(
    "refresh_tokens",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    sa.Column("token", sa.String(), nullable=False),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
    _ts("created_at"),
    _ts("updated_at"),
  )
  op.create_index("ix_refresh_tokens_token", "refresh_tokens", ["token"], unique=True)
  op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"], unique=False)
  op.create_index("ix_refresh_tokens_expires_at", "refresh_tokens", ["expires_at"], unique=False)

  op.create_table(
    "columns",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("title", sa.String(100), nullable=False, unique=True),
    sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
    sa.Column("colors", sa.String(50), nullable=True),
    sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    _ts("created_at"),
    _ts("updated_at"),
  )
  op.create_index("ix_columns_position", "columns", ["position"], unique=False)

  op.create_table(
    "tasks",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("column_id", sa.Integer(), sa.ForeignKey("columns.id"), nullable=False),
    sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
    sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
    sa.Column("position", sa.Integer(), nullable=False, server_default="1"),
    sa.Column("weight", sa.Integer(), nullable=False, server_default="0"),
    _ts("created_at"),
    _ts("updated_at"),
    sa.CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="ck_tasks_priority"),
  )
  op.create_index("ix_tasks_column_id", "tasks", ["column_id"], unique=False)
  op.create_index("ix_tasks_assigned_to", "tasks", ["assigned_to"], unique=False)
  op.create_index("ix_tasks_created_by", "tasks", ["created_by"], unique=False)
  op.create_index("ix_tasks_due_date", "tasks", ["due_date"], unique=False)

  op.create_table(
    "comments",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("content", sa.Text(), nullable=False),
    sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False),
    sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    _ts("created_at"),
    _ts("updated_at"),
  )
  op.create_index("ix_comments_task_id", "comments", ["task_id"], unique=False)
  op.create_index("ix_comments_created_by", "comments", ["created_by"], unique=False)

  op.create_table(
    "checklists",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("title", sa.String(255), nullable=False),
    sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False),
    sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("completed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
    _ts("created_at"),
    _ts("updated_at"),
  )
  op.create_index("ix_checklists_task_id", "checklists", ["task_id"], unique=False)

  op.create_table(
    "activities",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("entity_type", sa.String(20), nullable=False),
    sa.Column("entity_id", sa.Integer(), nullable=False),
    sa.Column("action", sa.String(30), nullable=False),
    sa.Column("field_name", sa.String(50), nullable=True),
    sa.Column("old_value", sa.Text(), nullable=True),
    sa.Column("new_value", sa.Text(), nullable=True),
    sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
    _ts("created_at"),
  )
  op.create_index("ix_activities_user_id", "activities", ["user_id"], unique=False)
  op.create_index("ix_activities_created_at", "activities", ["created_at"], unique=False)
  op.create_index("ix_activities_entity", "activities", ["entity_type", "entity_id"], unique=False)

  op.create_table(
    "app_settings",
    sa.Column("id", sa.Integer(), primary_key=True),
    sa.Column("app_name", sa.String(50), nullable=False, server_default="Offline Kanban"),
    sa.Column(
      "app_description",
      sa.String(200),
      nullable=False,
      server_default="A powerful offline-first Kanban board application",
    ),
    sa.Column("default_theme", sa.String(10), nullable=False, server_default="system"),
    sa.Column("enable_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
    _ts("created_at"),
    _ts("updated_at"),
    sa.CheckConstraint("id = 1", name="ck_app_settings_singleton"),
    sa.CheckConstraint("default_theme IN ('light', 'dark', 'system')", name="ck_app_settings_theme"),
  )
  op.execute("INSERT INTO app_settings (id) VALUES (1)")

  for table in UPDATED_AT_TABLES:
    op.execute(
      f"""
      CREATE TRIGGER IF NOT EXISTS trg_{table}_updated_at
      AFTER UPDATE ON {table}
      FOR EACH ROW
      BEGIN
        UPDATE {table} SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
      END
      """
    )


def downgrade() -> None:
  for table in UPDATED_AT_TABLES:
    op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_updated_at")
  op.drop_table("app_settings")
  op.drop_table("activities")
  op.drop_table("checklists")
  op.drop_table("comments")
  op.drop_table("tasks")
  op.drop_table("columns")
  op.drop_table("refresh_tokens")
  op.drop_table("users")
