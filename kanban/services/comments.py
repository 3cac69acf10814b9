from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from kanban.activity import ActivityLedger
from kanban.db import transaction
from kanban.errors import NotFound
from kanban.permissions import Actor
from kanban.stores.comments import CommentRow, CommentStore
from kanban.stores.tasks import TaskStore

EXCERPT_LEN = 100


def _excerpt(content: str) -> str:
  txt = " ".join(content.split())
  return txt if len(txt) <= EXCERPT_LEN else txt[: EXCERPT_LEN - 3] + "..."


class CommentService:
  def __init__(self, db: AsyncSession, ledger: ActivityLedger | None = None) -> None:
    self.db = db
    self.comments = CommentStore(db)
    self.tasks = TaskStore(db)
    self.ledger = ledger or ActivityLedger(db)

  async def _row(self, comment_id: int) -> CommentRow:
    row = await self.comments.get_row(comment_id)
    if not row:
      raise NotFound("Comment not found")
    return row

  async def get_comment(self, comment_id: int) -> CommentRow:
    return await self._row(comment_id)

  async def list_for_task(self, task_id: int) -> list[CommentRow]:
    if not await self.tasks.get(task_id):
      raise NotFound("Task not found")
    return await self.comments.list_for_task(task_id)

  async def create_comment(self, actor: Actor, *, task_id: int, content: str) -> CommentRow:
    async with transaction(self.db):
      if not await self.tasks.get(task_id):
        raise NotFound("Task not found")
      c = await self.comments.create(task_id=task_id, content=content, created_by=actor.id)
      comment_id = c.id

    await self.ledger.record_commented(task_id, actor.id, _excerpt(content))
    return await self._row(comment_id)

  async def update_comment(self, actor: Actor, comment_id: int, *, content: str) -> CommentRow:
    async with transaction(self.db):
      await self.comments.update(comment_id, user_id=actor.id, content=content)
    return await self._row(comment_id)

  async def delete_comment(self, actor: Actor, comment_id: int) -> None:
    async with transaction(self.db):
      await self.comments.delete(comment_id, user_id=actor.id)
