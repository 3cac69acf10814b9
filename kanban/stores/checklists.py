from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.models import ChecklistItem, utcnow


class ChecklistStore:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def get(self, item_id: int) -> ChecklistItem | None:
    res = await self.db.execute(select(ChecklistItem).where(ChecklistItem.id == item_id))
    return res.scalar_one_or_none()

  async def list_for_task(self, task_id: int) -> list[ChecklistItem]:
    res = await self.db.execute(
      select(ChecklistItem)
      .where(ChecklistItem.task_id == task_id)
      .order_by(ChecklistItem.created_at.asc(), ChecklistItem.id.asc())
    )
    return list(res.scalars().all())

  async def create(self, *, task_id: int, title: str, created_by: int) -> ChecklistItem:
    item = ChecklistItem(task_id=task_id, title=title.strip(), created_by=created_by)
    self.db.add(item)
    await self.db.flush()
    return item

  async def rename(self, item: ChecklistItem, title: str) -> None:
    item.title = title.strip()
    item.updated_at = utcnow()
    await self.db.flush()

  async def set_completed(self, item: ChecklistItem, *, user_id: int, completed: bool) -> None:
    item.completed_by = user_id if completed else None
    item.updated_at = utcnow()
    await self.db.flush()

  async def delete(self, item_id: int) -> None:
    await self.db.execute(delete(ChecklistItem).where(ChecklistItem.id == item_id))
