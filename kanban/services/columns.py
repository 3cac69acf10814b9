from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from kanban.activity import ActivityLedger
from kanban.db import transaction
from kanban.errors import DuplicateTitle, InvalidReference, NotFound, SameColumn
from kanban.models import BoardColumn, Task
from kanban.ordering import OrderingEngine
from kanban.permissions import Actor
from kanban.stores.columns import ColumnStore
from kanban.stores.tasks import TaskStore


class ColumnService:
  def __init__(self, db: AsyncSession, ledger: ActivityLedger | None = None) -> None:
    self.db = db
    self.columns = ColumnStore(db)
    self.tasks = TaskStore(db)
    self.ordering = OrderingEngine(db)
    self.ledger = ledger or ActivityLedger(db)

  async def get_column(self, column_id: int) -> BoardColumn:
    c = await self.columns.get(column_id)
    if not c:
      raise NotFound("Column not found")
    return c

  async def list_columns(self, *, show_archived: bool = False) -> list[BoardColumn]:
    return await self.columns.list_columns(show_archived=show_archived)

  async def list_with_task_counts(self, *, show_archived: bool = False) -> list[tuple[BoardColumn, int]]:
    return await self.columns.list_with_task_counts(show_archived=show_archived)

  async def board(self) -> list[tuple[BoardColumn, list[Task]]]:
    cols = await self.columns.list_columns()
    by_column = await self.tasks.list_for_columns([c.id for c in cols])
    return [(c, by_column.get(c.id, [])) for c in cols]

  async def create_column(self, actor: Actor, *, title: str, colors: str | None = None) -> BoardColumn:
    async with transaction(self.db):
      if await self.columns.title_exists(title):
        raise DuplicateTitle("column title already exists")
      position = await self.ordering.next_column_position()
      c = await self.columns.create(title=title, created_by=actor.id, colors=colors, position=position)
      column_id = c.id

    await self.ledger.record_created("column", column_id, actor.id, title.strip())
    return await self.get_column(column_id)

  async def update_column(
    self, actor: Actor, column_id: int, *, title: str | None = None, colors: str | None = None
  ) -> BoardColumn:
    async with transaction(self.db):
      c = await self.get_column(column_id)
      old_title = c.title
      if title is not None and await self.columns.title_exists(title, exclude_id=column_id):
        raise DuplicateTitle("column title already exists")
      await self.columns.update(c, title=title, colors=colors)

    if title is not None and title.strip() != old_title:
      await self.ledger.record_updated("column", column_id, actor.id, "title", old_title, title.strip())
    return await self.get_column(column_id)

  async def delete_column(self, actor: Actor, column_id: int) -> None:
    async with transaction(self.db):
      c = await self.get_column(column_id)
      title = c.title
      await self.ordering.ensure_column_deletable(column_id)
      await self.columns.delete(column_id)

    await self.ledger.record_deleted("column", column_id, actor.id, title)

  async def archive_column(self, actor: Actor, column_id: int) -> BoardColumn:
    async with transaction(self.db):
      c = await self.get_column(column_id)
      changed = c.deleted_at is None
      if changed:
        await self.ordering.ensure_column_deletable(column_id)
        await self.columns.set_archived(c, True)

    if changed:
      await self.ledger.record_updated("column", column_id, actor.id, "status", "active", "archived")
    return await self.get_column(column_id)

  async def unarchive_column(self, actor: Actor, column_id: int) -> BoardColumn:
    async with transaction(self.db):
      c = await self.get_column(column_id)
      changed = c.deleted_at is not None
      if changed:
        await self.columns.set_archived(c, False)

    if changed:
      await self.ledger.record_updated("column", column_id, actor.id, "status", "archived", "active")
    return await self.get_column(column_id)

  async def reorder_columns(self, orders: list[tuple[int, int]]) -> None:
    """All-or-nothing: unknown ids reject the whole batch before any row changes."""
    async with transaction(self.db):
      ids = [cid for cid, _ in orders]
      missing = set(ids) - await self.columns.existing_ids(ids)
      if missing:
        raise NotFound(f"Column {min(missing)} not found")
      await self.ordering.reorder_columns(orders)

  async def drain_column(self, actor: Actor, from_column_id: int, to_column_id: int) -> int:
    if from_column_id == to_column_id:
      raise SameColumn("Source and destination columns cannot be the same")
    async with transaction(self.db):
      src = await self.columns.get(from_column_id)
      if not src:
        raise InvalidReference("Source column not found")
      dest = await self.columns.get(to_column_id)
      if not dest or dest.deleted_at is not None:
        raise InvalidReference("Destination column not found")
      return await self.ordering.move_all_tasks(from_column_id, to_column_id)
