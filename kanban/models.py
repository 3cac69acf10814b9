from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


TASK_PRIORITIES = ("low", "medium", "high", "urgent")
THEMES = ("light", "dark", "system")

DEFAULT_APP_NAME = "Offline Kanban"
DEFAULT_APP_DESCRIPTION = "A powerful offline-first Kanban board application"
DEFAULT_THEME = "system"


class Base(DeclarativeBase):
  pass


class User(Base):
  __tablename__ = "users"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  username: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
  password_hash: Mapped[str] = mapped_column(String, nullable=False)
  name: Mapped[str | None] = mapped_column(String(100), nullable=True)
  designation: Mapped[str | None] = mapped_column(String(100), nullable=True)
  is_root: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class RefreshToken(Base):
  __tablename__ = "refresh_tokens"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
  token: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
  is_revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class BoardColumn(Base):
  __tablename__ = "columns"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  title: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
  created_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
  colors: Mapped[str | None] = mapped_column(String(50), nullable=True)
  position: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
  deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Task(Base):
  __tablename__ = "tasks"
  __table_args__ = (CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="ck_tasks_priority"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  title: Mapped[str] = mapped_column(String(255), nullable=False)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  column_id: Mapped[int] = mapped_column(Integer, ForeignKey("columns.id"), nullable=False, index=True)
  assigned_to: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
  created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
  due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
  priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
  position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
  weight: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Comment(Base):
  __tablename__ = "comments"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  content: Mapped[str] = mapped_column(Text, nullable=False)
  task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
  created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class ChecklistItem(Base):
  __tablename__ = "checklists"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  title: Mapped[str] = mapped_column(String(255), nullable=False)
  task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
  created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
  completed_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

  @property
  def is_completed(self) -> bool:
    return self.completed_by is not None


class Activity(Base):
  __tablename__ = "activities"

  # No FK on entity_id: rows outlive the entity they describe.
  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
  entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
  action: Mapped[str] = mapped_column(String(30), nullable=False)
  field_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
  old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
  new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
  user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)


class AppSettings(Base):
  __tablename__ = "app_settings"
  __table_args__ = (
    CheckConstraint("id = 1", name="ck_app_settings_singleton"),
    CheckConstraint("default_theme IN ('light', 'dark', 'system')", name="ck_app_settings_theme"),
  )

  id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
  app_name: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_APP_NAME)
  app_description: Mapped[str] = mapped_column(String(200), nullable=False, default=DEFAULT_APP_DESCRIPTION)
  default_theme: Mapped[str] = mapped_column(String(10), nullable=False, default=DEFAULT_THEME)
  enable_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
