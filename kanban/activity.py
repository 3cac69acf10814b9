from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from kanban.errors import AuditFailure
from kanban.models import Activity, Task
from kanban.stores.activities import ActivityStore

logger = logging.getLogger(__name__)

EMPTY = "(empty)"
UNASSIGNED = "Unassigned"


@dataclass(frozen=True)
class FieldChange:
  field: str
  old: str | None
  new: str | None


@dataclass(frozen=True)
class TaskSnapshot:
  id: int
  title: str
  description: str | None
  priority: str
  assigned_to: int | None
  column_id: int
  created_by: int

  @classmethod
  def of(cls, t: Task) -> "TaskSnapshot":
    return cls(
      id=t.id,
      title=t.title,
      description=t.description,
      priority=t.priority,
      assigned_to=t.assigned_to,
      column_id=t.column_id,
      created_by=t.created_by,
    )


def compute_task_changes(
  snapshot: TaskSnapshot,
  values: dict[str, Any],
  *,
  assignee_labels: dict[int, str] | None = None,
) -> list[FieldChange]:
  """
  Diff a partial update against the pre-update snapshot.

  Keys absent from `values` mean "no change requested". The assignee field is
  rendered with the labels in `assignee_labels` (user id -> display name).
  """
  labels = assignee_labels or {}
  changes: list[FieldChange] = []

  if "title" in values and values["title"] != snapshot.title:
    changes.append(FieldChange("title", snapshot.title, values["title"]))

  if "description" in values and (values["description"] or "") != (snapshot.description or ""):
    changes.append(FieldChange("description", snapshot.description or EMPTY, values["description"] or ""))

  if "priority" in values and values["priority"] != snapshot.priority:
    changes.append(FieldChange("priority", snapshot.priority, values["priority"]))

  if "assigned_to" in values and values["assigned_to"] != snapshot.assigned_to:
    old = labels.get(snapshot.assigned_to, UNASSIGNED) if snapshot.assigned_to is not None else UNASSIGNED
    new = labels.get(values["assigned_to"], UNASSIGNED) if values["assigned_to"] is not None else UNASSIGNED
    changes.append(FieldChange("assignee", old, new))

  return changes


class ActivityLedger:
  """
  Append-only activity history.

  `append` raises AuditFailure. The `record_*` helpers are best-effort: they run
  after the primary commit, and a failure is rolled back, logged and swallowed.
  """

  def __init__(self, db: AsyncSession) -> None:
    self.db = db
    self.store = ActivityStore(db)

  async def append(
    self,
    *,
    entity_type: str,
    entity_id: int,
    action: str,
    actor_id: int | None,
    field_name: str | None = None,
    old_value: str | None = None,
    new_value: str | None = None,
  ) -> Activity:
    try:
      a = await self.store.add(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=actor_id,
        field_name=field_name,
        old_value=old_value,
        new_value=new_value,
      )
      await self.db.commit()
    except Exception as exc:
      raise AuditFailure(f"failed to record {entity_type}.{action} for {entity_id}") from exc
    return a

  async def _best_effort(self, **kwargs: Any) -> Activity | None:
    try:
      return await self.append(**kwargs)
    except Exception as exc:
      await self.db.rollback()
      logger.warning(
        "Activity not recorded (%s %s #%s): %s",
        kwargs.get("entity_type"),
        kwargs.get("action"),
        kwargs.get("entity_id"),
        exc,
      )
      return None

  async def record_created(self, entity_type: str, entity_id: int, actor_id: int | None, summary: str) -> Activity | None:
    return await self._best_effort(
      entity_type=entity_type, entity_id=entity_id, action="created", actor_id=actor_id, new_value=summary
    )

  async def record_updated(
    self,
    entity_type: str,
    entity_id: int,
    actor_id: int | None,
    field_name: str,
    old_value: str | None,
    new_value: str | None,
  ) -> Activity | None:
    return await self._best_effort(
      entity_type=entity_type,
      entity_id=entity_id,
      action="updated",
      actor_id=actor_id,
      field_name=field_name,
      old_value=old_value,
      new_value=new_value,
    )

  async def record_deleted(self, entity_type: str, entity_id: int, actor_id: int | None, summary: str) -> Activity | None:
    return await self._best_effort(
      entity_type=entity_type, entity_id=entity_id, action="deleted", actor_id=actor_id, old_value=summary
    )

  async def record_moved(
    self, entity_type: str, entity_id: int, actor_id: int | None, old_column: str | None, new_column: str | None
  ) -> Activity | None:
    return await self._best_effort(
      entity_type=entity_type,
      entity_id=entity_id,
      action="moved",
      actor_id=actor_id,
      field_name="column",
      old_value=old_column,
      new_value=new_column,
    )

  async def record_assigned(
    self, entity_type: str, entity_id: int, actor_id: int | None, old_assignee: str | None, new_assignee: str | None
  ) -> Activity | None:
    return await self._best_effort(
      entity_type=entity_type,
      entity_id=entity_id,
      action="assigned",
      actor_id=actor_id,
      field_name="assignee",
      old_value=old_assignee or UNASSIGNED,
      new_value=new_assignee or UNASSIGNED,
    )

  async def record_priority_changed(
    self, entity_type: str, entity_id: int, actor_id: int | None, old_priority: str, new_priority: str
  ) -> Activity | None:
    return await self._best_effort(
      entity_type=entity_type,
      entity_id=entity_id,
      action="priority_changed",
      actor_id=actor_id,
      field_name="priority",
      old_value=old_priority,
      new_value=new_priority,
    )

  async def record_commented(self, task_id: int, actor_id: int | None, excerpt: str) -> Activity | None:
    return await self._best_effort(
      entity_type="task", entity_id=task_id, action="commented", actor_id=actor_id, new_value=excerpt
    )

  async def record_changes(self, task_id: int, actor_id: int | None, changes: list[FieldChange]) -> None:
    for ch in changes:
      await self.record_updated("task", task_id, actor_id, ch.field, ch.old, ch.new)

  async def purge_older_than(self, days: int) -> int:
    n = await self.store.delete_older_than(days)
    await self.db.commit()
    logger.info("Activity retention removed %s rows older than %s days", n, days)
    return n
