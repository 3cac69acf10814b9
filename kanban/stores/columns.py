from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.models import BoardColumn, Task, utcnow


class ColumnStore:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def get(self, column_id: int) -> BoardColumn | None:
    res = await self.db.execute(select(BoardColumn).where(BoardColumn.id == column_id))
    return res.scalar_one_or_none()

  async def list_columns(self, *, show_archived: bool = False) -> list[BoardColumn]:
    stmt = select(BoardColumn)
    if not show_archived:
      stmt = stmt.where(BoardColumn.deleted_at.is_(None))
    res = await self.db.execute(stmt.order_by(BoardColumn.position.asc(), BoardColumn.id.asc()))
    return list(res.scalars().all())

  async def list_with_task_counts(self, *, show_archived: bool = False) -> list[tuple[BoardColumn, int]]:
    counts = (
      select(Task.column_id.label("column_id"), func.count(Task.id).label("n"))
      .group_by(Task.column_id)
      .subquery()
    )
    stmt = select(BoardColumn, func.coalesce(counts.c.n, 0)).outerjoin(counts, counts.c.column_id == BoardColumn.id)
    if not show_archived:
      stmt = stmt.where(BoardColumn.deleted_at.is_(None))
    res = await self.db.execute(stmt.order_by(BoardColumn.position.asc(), BoardColumn.id.asc()))
    return [(c, int(n)) for c, n in res.all()]

  async def title_exists(self, title: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(func.count()).select_from(BoardColumn).where(func.lower(BoardColumn.title) == title.strip().lower())
    if exclude_id is not None:
      stmt = stmt.where(BoardColumn.id != exclude_id)
    res = await self.db.execute(stmt)
    return (res.scalar_one() or 0) > 0

  async def existing_ids(self, ids: list[int]) -> set[int]:
    if not ids:
      return set()
    res = await self.db.execute(select(BoardColumn.id).where(BoardColumn.id.in_(ids)))
    return set(res.scalars().all())

  async def create(self, *, title: str, created_by: int | None, colors: str | None, position: int) -> BoardColumn:
    c = BoardColumn(title=title.strip(), created_by=created_by, colors=colors, position=position)
    self.db.add(c)
    await self.db.flush()
    return c

  async def update(self, c: BoardColumn, *, title: str | None = None, colors: str | None = None) -> BoardColumn:
    if title is not None:
      c.title = title.strip()
    if colors is not None:
      c.colors = colors
    c.updated_at = utcnow()
    await self.db.flush()
    return c

  async def set_archived(self, c: BoardColumn, archived: bool) -> None:
    c.deleted_at = utcnow() if archived else None
    c.updated_at = utcnow()
    await self.db.flush()

  async def delete(self, column_id: int) -> None:
    await self.db.execute(delete(BoardColumn).where(BoardColumn.id == column_id))
