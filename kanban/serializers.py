from __future__ import annotations

from kanban.models import AppSettings, BoardColumn, ChecklistItem, Task, User
from kanban.schemas import (
  ActivityOut,
  ChecklistItemOut,
  ColumnOut,
  CommentOut,
  SettingsOut,
  TaskOut,
  UserBriefOut,
  UserOut,
)
from kanban.stores.activities import ActivityRow
from kanban.stores.comments import CommentRow
from kanban.stores.tasks import TaskRow


def user_out(u: User) -> UserOut:
  return UserOut(
    id=u.id,
    username=u.username,
    name=u.name,
    designation=u.designation,
    isRoot=bool(u.is_root),
    isActive=bool(u.is_active),
    createdAt=u.created_at,
    updatedAt=u.updated_at,
  )


def _brief(user_id: int | None, username: str | None, name: str | None) -> UserBriefOut | None:
  if user_id is None or username is None:
    return None
  return UserBriefOut(id=user_id, username=username, name=name)


def column_out(c: BoardColumn, *, task_count: int | None = None) -> ColumnOut:
  return ColumnOut(
    id=c.id,
    title=c.title,
    colors=c.colors,
    position=c.position,
    createdBy=c.created_by,
    archived=c.deleted_at is not None,
    archivedAt=c.deleted_at,
    taskCount=task_count,
    createdAt=c.created_at,
    updatedAt=c.updated_at,
  )


def task_out(t: Task) -> TaskOut:
  return TaskOut(
    id=t.id,
    title=t.title,
    description=t.description,
    columnId=t.column_id,
    assignedTo=t.assigned_to,
    createdBy=t.created_by,
    dueDate=t.due_date,
    priority=t.priority,
    position=t.position,
    weight=t.weight,
    createdAt=t.created_at,
    updatedAt=t.updated_at,
  )


def task_row_out(row: TaskRow) -> TaskOut:
  out = task_out(row.task)
  out.columnTitle = row.column_title
  out.assignedUser = _brief(row.task.assigned_to, row.assignee_username, row.assignee_name)
  out.createdByUser = _brief(row.task.created_by, row.creator_username, row.creator_name)
  out.commentCount = int(row.comment_count or 0)
  return out


def comment_out(row: CommentRow) -> CommentOut:
  c = row.comment
  return CommentOut(
    id=c.id,
    taskId=c.task_id,
    content=c.content,
    createdBy=c.created_by,
    author=_brief(c.created_by, row.username, row.name),
    createdAt=c.created_at,
    updatedAt=c.updated_at,
  )


def checklist_item_out(item: ChecklistItem) -> ChecklistItemOut:
  return ChecklistItemOut(
    id=item.id,
    taskId=item.task_id,
    title=item.title,
    createdBy=item.created_by,
    completedBy=item.completed_by,
    isCompleted=item.is_completed,
    createdAt=item.created_at,
    updatedAt=item.updated_at,
  )


def activity_out(row: ActivityRow) -> ActivityOut:
  a = row.activity
  return ActivityOut(
    id=a.id,
    entityType=a.entity_type,
    entityId=a.entity_id,
    action=a.action,
    fieldName=a.field_name,
    oldValue=a.old_value,
    newValue=a.new_value,
    userId=a.user_id,
    user=_brief(a.user_id, row.username, row.name),
    createdAt=a.created_at,
  )


def settings_out(s: AppSettings) -> SettingsOut:
  return SettingsOut(
    appName=s.app_name,
    appDescription=s.app_description,
    defaultTheme=s.default_theme,
    enableNotifications=bool(s.enable_notifications),
    updatedAt=s.updated_at,
  )
