from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.errors import HasTasks, LastColumn, NotFound
from kanban.models import BoardColumn, Task, utcnow


class OrderingEngine:
  """
  Positions of tasks within a column and of columns on the board.

  Notes:
  - Every method runs inside the caller's transaction; callers wrap sequences in `db.transaction()`.
  - Only relative order is guaranteed. Gaps left in a source column after a move are never compacted.
  """

  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def next_task_position(self, column_id: int) -> int:
    res = await self.db.execute(select(func.max(Task.position)).where(Task.column_id == column_id))
    max_pos = res.scalar_one()
    return (max_pos + 1) if max_pos is not None else 1

  async def next_column_position(self) -> int:
    res = await self.db.execute(select(func.max(BoardColumn.position)))
    max_pos = res.scalar_one()
    return (max_pos + 1) if max_pos is not None else 1

  async def move_to_column(self, task_id: int, column_id: int, new_position: int) -> None:
    new_position = max(1, int(new_position))
    await self.db.execute(
      update(Task).where(Task.id == task_id).values(column_id=column_id, position=new_position, updated_at=utcnow())
    )
    await self.db.execute(
      update(Task)
      .where(Task.column_id == column_id, Task.position >= new_position, Task.id != task_id)
      .values(position=Task.position + 1)
    )

  async def move_all_tasks(self, from_column_id: int, to_column_id: int) -> int:
    """Append every task of the source column after the destination's tail, keeping their relative order."""
    start = await self.next_task_position(to_column_id)
    res = await self.db.execute(
      update(Task)
      .where(Task.column_id == from_column_id)
      .values(column_id=to_column_id, position=Task.position + (start - 1), updated_at=utcnow())
    )
    return int(res.rowcount or 0)

  async def reorder_columns(self, orders: list[tuple[int, int]]) -> None:
    for column_id, position in orders:
      res = await self.db.execute(
        update(BoardColumn).where(BoardColumn.id == column_id).values(position=position, updated_at=utcnow())
      )
      if not res.rowcount:
        raise NotFound(f"Column {column_id} not found")

  async def ensure_column_deletable(self, column_id: int) -> None:
    res = await self.db.execute(
      select(func.count()).select_from(BoardColumn).where(BoardColumn.id != column_id, BoardColumn.deleted_at.is_(None))
    )
    if (res.scalar_one() or 0) == 0:
      raise LastColumn("cannot delete the last column")
    tres = await self.db.execute(select(func.count()).select_from(Task).where(Task.column_id == column_id))
    if (tres.scalar_one() or 0) > 0:
      raise HasTasks("cannot delete column with existing tasks")
