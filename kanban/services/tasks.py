from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from kanban.activity import ActivityLedger, TaskSnapshot, compute_task_changes
from kanban.db import transaction
from kanban.errors import Forbidden, InvalidReference, NotFound
from kanban.models import BoardColumn, Task
from kanban.ordering import OrderingEngine
from kanban.permissions import Actor, can_mutate
from kanban.stores.columns import ColumnStore
from kanban.stores.tasks import TaskFilters, TaskRow, TaskStore
from kanban.stores.users import UserStore

UPDATABLE_FIELDS = ("title", "description", "priority", "assigned_to", "due_date", "column_id")


class TaskService:
  """
  Task lifecycle: validation, ordering and activity recording around TaskStore.

  Each mutation commits in one transaction; activity rows are written afterwards
  and never fail the mutation.
  """

  def __init__(self, db: AsyncSession, ledger: ActivityLedger | None = None) -> None:
    self.db = db
    self.tasks = TaskStore(db)
    self.columns = ColumnStore(db)
    self.users = UserStore(db)
    self.ordering = OrderingEngine(db)
    self.ledger = ledger or ActivityLedger(db)

  async def _require_task(self, task_id: int) -> Task:
    t = await self.tasks.get(task_id)
    if not t:
      raise NotFound("Task not found")
    return t

  async def _require_open_column(self, column_id: int) -> BoardColumn:
    c = await self.columns.get(column_id)
    if not c or c.deleted_at is not None:
      raise InvalidReference("Column not found")
    return c

  async def _require_assignee(self, user_id: int) -> None:
    if not await self.users.get(user_id):
      raise InvalidReference("Assignee not found")

  async def _assignee_labels(self, *user_ids: int | None) -> dict[int, str]:
    labels: dict[int, str] = {}
    for uid in user_ids:
      if uid is None or uid in labels:
        continue
      name = await self.users.display_name(uid)
      if name:
        labels[uid] = name
    return labels

  async def _reload(self, task_id: int) -> Task:
    t = await self.tasks.get(task_id, fresh=True)
    if not t:
      raise NotFound("Task not found")
    return t

  async def get_task(self, task_id: int) -> TaskRow:
    row = await self.tasks.get_with_relations(task_id)
    if not row:
      raise NotFound("Task not found")
    return row

  async def list_tasks(self, filters: TaskFilters) -> tuple[list[TaskRow], int]:
    rows = await self.tasks.list_with_relations(filters)
    total = await self.tasks.count(filters)
    return rows, total

  async def create_task(
    self,
    actor: Actor,
    *,
    title: str,
    column_id: int,
    description: str | None = None,
    assigned_to: int | None = None,
    due_date: datetime | None = None,
    priority: str | None = None,
  ) -> Task:
    async with transaction(self.db):
      await self._require_open_column(column_id)
      if assigned_to is not None:
        await self._require_assignee(assigned_to)
      position = await self.ordering.next_task_position(column_id)
      t = await self.tasks.create(
        title=title,
        description=description,
        column_id=column_id,
        created_by=actor.id,
        assigned_to=assigned_to,
        due_date=due_date,
        priority=priority or "medium",
        position=position,
      )
      task_id = t.id

    await self.ledger.record_created("task", task_id, actor.id, title)
    return await self._reload(task_id)

  async def update_task(self, actor: Actor, task_id: int, values: dict[str, Any]) -> Task:
    """
    Partial update. Keys absent from `values` are left untouched.

    A column change moves the task to the tail of the target column. Diffs are
    computed against the state before the move.
    """
    values = {k: v for k, v in values.items() if k in UPDATABLE_FIELDS}
    moved: tuple[str | None, str] | None = None

    async with transaction(self.db):
      t = await self._require_task(task_id)
      if not can_mutate(actor, t.created_by):
        raise Forbidden("You can only edit your own tasks")
      snap = TaskSnapshot.of(t)

      target_column_id = values.pop("column_id", None)
      dest: BoardColumn | None = None
      if target_column_id is not None and target_column_id != snap.column_id:
        dest = await self._require_open_column(target_column_id)
      if values.get("assigned_to") is not None:
        await self._require_assignee(values["assigned_to"])

      if dest is not None:
        src = await self.columns.get(snap.column_id)
        position = await self.ordering.next_task_position(dest.id)
        await self.ordering.move_to_column(task_id, dest.id, position)
        moved = (src.title if src else None, dest.title)

      labels = await self._assignee_labels(snap.assigned_to, values.get("assigned_to")) if "assigned_to" in values else {}
      changes = compute_task_changes(snap, values, assignee_labels=labels)
      if values:
        await self.tasks.update(t, values)

    if moved is not None:
      await self.ledger.record_moved("task", task_id, actor.id, moved[0], moved[1])
    await self.ledger.record_changes(task_id, actor.id, changes)
    return await self._reload(task_id)

  async def move_task(self, task_id: int, column_id: int, new_position: int, *, actor: Actor | None = None) -> Task:
    async with transaction(self.db):
      t = await self._require_task(task_id)
      dest = await self._require_open_column(column_id)
      old_column_id = t.column_id
      src = await self.columns.get(old_column_id) if old_column_id != column_id else dest
      await self.ordering.move_to_column(task_id, column_id, new_position)

    if actor is not None and old_column_id != column_id:
      await self.ledger.record_moved("task", task_id, actor.id, src.title if src else None, dest.title)
    return await self._reload(task_id)

  async def delete_task(self, actor: Actor, task_id: int) -> None:
    async with transaction(self.db):
      t = await self._require_task(task_id)
      if not can_mutate(actor, t.created_by):
        raise Forbidden("You can only delete your own tasks")
      title = t.title
      await self.tasks.delete(task_id)

    await self.ledger.record_deleted("task", task_id, actor.id, title)
