from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field
from pydantic import field_validator

Priority = Literal["low", "medium", "high", "urgent"]
Theme = Literal["light", "dark", "system"]

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_dt_utc(value: object) -> object:
  if value is None:
    return None
  if isinstance(value, datetime):
    dt = value
  elif isinstance(value, str):
    s = value.strip()
    if not s:
      return None
    if _DATE_ONLY_RE.fullmatch(s):
      dt = datetime.fromisoformat(s)
    else:
      dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
  else:
    return value

  if dt.tzinfo is None:
    return dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


def _strip(v: object) -> object:
  # Runs before length checks so whitespace-only input fails min_length.
  return v.strip() if isinstance(v, str) else v


# --- auth / setup ---


class LoginIn(BaseModel):
  username: str = Field(min_length=1, max_length=20)
  password: str = Field(min_length=1, max_length=200)


class RefreshIn(BaseModel):
  refreshToken: str = Field(min_length=1)


class TokenOut(BaseModel):
  accessToken: str
  refreshToken: str
  tokenType: str = "bearer"
  expiresAt: datetime
  user: "UserOut"


class SetupIn(BaseModel):
  username: str = Field(min_length=3, max_length=20)
  password: str = Field(min_length=4, max_length=20)
  name: str | None = Field(default=None, max_length=100)
  designation: str | None = Field(default=None, max_length=100)


class SetupStatusOut(BaseModel):
  setupComplete: bool


# --- users ---


class UserOut(BaseModel):
  id: int
  username: str
  name: str | None = None
  designation: str | None = None
  isRoot: bool
  isActive: bool
  createdAt: datetime
  updatedAt: datetime


class UserBriefOut(BaseModel):
  id: int
  username: str
  name: str | None = None


class UserCreateIn(BaseModel):
  username: str = Field(min_length=3, max_length=20)
  password: str = Field(min_length=4, max_length=20)
  name: str | None = Field(default=None, max_length=100)
  designation: str | None = Field(default=None, max_length=100)
  isRoot: bool = False


class UserUpdateIn(BaseModel):
  username: str | None = Field(default=None, min_length=3, max_length=20)
  name: str | None = Field(default=None, max_length=100)
  designation: str | None = Field(default=None, max_length=100)


class ProfileUpdateIn(BaseModel):
  name: str | None = Field(default=None, max_length=100)
  designation: str | None = Field(default=None, max_length=100)


class ChangePasswordIn(BaseModel):
  currentPassword: str = Field(min_length=1, max_length=200)
  newPassword: str = Field(min_length=4, max_length=20)


class AdminSetPasswordIn(BaseModel):
  newPassword: str = Field(min_length=4, max_length=20)


class UserListOut(BaseModel):
  users: list[UserOut]
  total: int
  page: int
  limit: int


# --- columns ---


class ColumnOut(BaseModel):
  id: int
  title: str
  colors: str | None = None
  position: int
  createdBy: int | None = None
  archived: bool
  archivedAt: datetime | None = None
  taskCount: int | None = None
  createdAt: datetime
  updatedAt: datetime


class ColumnCreateIn(BaseModel):
  title: str = Field(min_length=2, max_length=100)
  colors: str | None = Field(default=None, max_length=50)

  @field_validator("title", mode="before")
  @classmethod
  def _title(cls, v: object) -> object:
    return _strip(v)


class ColumnUpdateIn(BaseModel):
  title: str | None = Field(default=None, min_length=2, max_length=100)
  colors: str | None = Field(default=None, max_length=50)

  @field_validator("title", mode="before")
  @classmethod
  def _title(cls, v: object) -> object:
    return _strip(v)


class ColumnOrderIn(BaseModel):
  id: int
  position: int = Field(ge=0)


class ColumnReorderIn(BaseModel):
  columns: list[ColumnOrderIn] = Field(min_length=1)


class ColumnDrainIn(BaseModel):
  toColumnId: int


class ColumnDrainOut(BaseModel):
  moved: int


# --- tasks ---


class TaskOut(BaseModel):
  id: int
  title: str
  description: str | None = None
  columnId: int
  columnTitle: str | None = None
  assignedTo: int | None = None
  assignedUser: UserBriefOut | None = None
  createdBy: int
  createdByUser: UserBriefOut | None = None
  dueDate: datetime | None = None
  priority: str
  position: int
  weight: int
  commentCount: int | None = None
  createdAt: datetime
  updatedAt: datetime


class TaskListOut(BaseModel):
  tasks: list[TaskOut]
  total: int
  page: int
  pageSize: int
  totalPages: int


class TaskCreateIn(BaseModel):
  title: str = Field(min_length=3, max_length=255)
  description: str | None = None
  columnId: int
  assignedTo: int | None = None
  dueDate: datetime | None = None
  priority: Priority | None = None

  @field_validator("title", mode="before")
  @classmethod
  def _title(cls, v: object) -> object:
    return _strip(v)

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_date_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)


class TaskUpdateIn(BaseModel):
  title: str | None = Field(default=None, min_length=3, max_length=255)
  description: str | None = None
  columnId: int | None = None
  assignedTo: int | None = None
  dueDate: datetime | None = None
  priority: Priority | None = None

  @field_validator("title", mode="before")
  @classmethod
  def _title(cls, v: object) -> object:
    return _strip(v)

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_date_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)


class TaskMoveIn(BaseModel):
  columnId: int
  position: int = Field(ge=1)


class BoardColumnOut(BaseModel):
  column: ColumnOut
  tasks: list[TaskOut]


class BoardOut(BaseModel):
  columns: list[BoardColumnOut]


# --- comments ---


class CommentOut(BaseModel):
  id: int
  taskId: int
  content: str
  createdBy: int
  author: UserBriefOut | None = None
  createdAt: datetime
  updatedAt: datetime


class CommentCreateIn(BaseModel):
  taskId: int
  content: str = Field(min_length=1, max_length=10000)

  @field_validator("content", mode="before")
  @classmethod
  def _content(cls, v: object) -> object:
    return _strip(v)


class CommentUpdateIn(BaseModel):
  content: str = Field(min_length=1, max_length=10000)

  @field_validator("content", mode="before")
  @classmethod
  def _content(cls, v: object) -> object:
    return _strip(v)


# --- checklists ---


class ChecklistItemOut(BaseModel):
  id: int
  taskId: int
  title: str
  createdBy: int
  completedBy: int | None = None
  isCompleted: bool
  createdAt: datetime
  updatedAt: datetime


class ChecklistItemCreateIn(BaseModel):
  title: str = Field(min_length=1, max_length=255)

  @field_validator("title", mode="before")
  @classmethod
  def _title(cls, v: object) -> object:
    return _strip(v)


class ChecklistItemUpdateIn(BaseModel):
  title: str | None = Field(default=None, min_length=1, max_length=255)
  completed: bool | None = None

  @field_validator("title", mode="before")
  @classmethod
  def _title(cls, v: object) -> object:
    return _strip(v)


# --- activities ---


class ActivityOut(BaseModel):
  id: int
  entityType: str
  entityId: int
  action: str
  fieldName: str | None = None
  oldValue: str | None = None
  newValue: str | None = None
  userId: int | None = None
  user: UserBriefOut | None = None
  createdAt: datetime


# --- settings ---


class SettingsOut(BaseModel):
  appName: str
  appDescription: str
  defaultTheme: Theme
  enableNotifications: bool
  updatedAt: datetime


class SettingsUpdateIn(BaseModel):
  appName: str | None = Field(default=None, min_length=2, max_length=50)
  appDescription: str | None = Field(default=None, max_length=200)
  defaultTheme: Theme | None = None
  enableNotifications: bool | None = None


TokenOut.model_rebuild()
