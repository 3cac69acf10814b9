from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from kanban.models import BoardColumn, Comment, Task, User, utcnow

ORDERABLE = {
  "position": Task.position,
  "created_at": Task.created_at,
  "updated_at": Task.updated_at,
  "title": Task.title,
  "due_date": Task.due_date,
}


@dataclass
class TaskFilters:
  search: str | None = None
  column_id: int | None = None
  assigned_to: int | None = None
  created_by: int | None = None
  priority: str | None = None
  due_from: datetime | None = None
  due_to: datetime | None = None
  created_from: datetime | None = None
  created_to: datetime | None = None
  order_by: str = "position"
  order_dir: str = "asc"
  page: int = 1
  page_size: int = 20


@dataclass
class TaskRow:
  task: Task
  column_title: str | None = None
  assignee_username: str | None = None
  assignee_name: str | None = None
  creator_username: str | None = None
  creator_name: str | None = None
  comment_count: int = 0


def _apply_filters(stmt: Select, f: TaskFilters) -> Select:
  if f.search:
    q = f"%{f.search.strip()}%"
    stmt = stmt.where(or_(Task.title.ilike(q), Task.description.ilike(q)))
  if f.column_id is not None:
    stmt = stmt.where(Task.column_id == f.column_id)
  if f.assigned_to is not None:
    stmt = stmt.where(Task.assigned_to == f.assigned_to)
  if f.created_by is not None:
    stmt = stmt.where(Task.created_by == f.created_by)
  if f.priority:
    stmt = stmt.where(Task.priority == f.priority)
  if f.due_from is not None:
    stmt = stmt.where(Task.due_date >= f.due_from)
  if f.due_to is not None:
    stmt = stmt.where(Task.due_date <= f.due_to)
  if f.created_from is not None:
    stmt = stmt.where(Task.created_at >= f.created_from)
  if f.created_to is not None:
    stmt = stmt.where(Task.created_at <= f.created_to)
  return stmt


class TaskStore:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def get(self, task_id: int, *, fresh: bool = False) -> Task | None:
    stmt = select(Task).where(Task.id == task_id)
    if fresh:
      stmt = stmt.execution_options(populate_existing=True)
    res = await self.db.execute(stmt)
    return res.scalar_one_or_none()

  async def create(
    self,
    *,
    title: str,
    description: str | None,
    column_id: int,
    created_by: int,
    position: int,
    assigned_to: int | None = None,
    due_date: datetime | None = None,
    priority: str = "medium",
  ) -> Task:
    t = Task(
      title=title,
      description=description,
      column_id=column_id,
      created_by=created_by,
      assigned_to=assigned_to,
      due_date=due_date,
      priority=priority,
      position=position,
    )
    self.db.add(t)
    await self.db.flush()
    return t

  async def update(self, t: Task, values: dict[str, Any]) -> Task:
    """Apply a partial update; keys absent from `values` are left untouched."""
    for key in ("title", "description", "priority", "assigned_to", "due_date", "weight"):
      if key in values:
        setattr(t, key, values[key])
    t.updated_at = utcnow()
    await self.db.flush()
    return t

  async def delete(self, task_id: int) -> None:
    await self.db.execute(delete(Task).where(Task.id == task_id))

  async def list_for_columns(self, column_ids: list[int]) -> dict[int, list[Task]]:
    out: dict[int, list[Task]] = {cid: [] for cid in column_ids}
    if not column_ids:
      return out
    res = await self.db.execute(
      select(Task).where(Task.column_id.in_(column_ids)).order_by(Task.column_id.asc(), Task.position.asc(), Task.id.asc())
    )
    for t in res.scalars().all():
      out[t.column_id].append(t)
    return out

  def _with_relations(self) -> Select:
    assignee = aliased(User)
    creator = aliased(User)
    comment_count = (
      select(func.count(Comment.id)).where(Comment.task_id == Task.id).correlate(Task).scalar_subquery()
    )
    return (
      select(
        Task,
        BoardColumn.title,
        assignee.username,
        assignee.name,
        creator.username,
        creator.name,
        comment_count,
      )
      .join(BoardColumn, BoardColumn.id == Task.column_id)
      .outerjoin(assignee, assignee.id == Task.assigned_to)
      .outerjoin(creator, creator.id == Task.created_by)
    )

  async def get_with_relations(self, task_id: int) -> TaskRow | None:
    res = await self.db.execute(self._with_relations().where(Task.id == task_id))
    row = res.one_or_none()
    return TaskRow(*row) if row else None

  async def list_with_relations(self, f: TaskFilters) -> list[TaskRow]:
    col = ORDERABLE.get(f.order_by, Task.position)
    order = col.desc() if f.order_dir.lower() == "desc" else col.asc()
    page = max(1, f.page)
    size = max(1, min(100, f.page_size))
    stmt = _apply_filters(self._with_relations(), f).order_by(order, Task.id.asc())
    res = await self.db.execute(stmt.offset((page - 1) * size).limit(size))
    return [TaskRow(*row) for row in res.all()]

  async def count(self, f: TaskFilters) -> int:
    res = await self.db.execute(_apply_filters(select(func.count()).select_from(Task), f))
    return int(res.scalar_one() or 0)
