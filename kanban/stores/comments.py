from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.errors import Forbidden, NotFound
from kanban.models import Comment, User, utcnow


@dataclass
class CommentRow:
  comment: Comment
  username: str | None = None
  name: str | None = None


class CommentStore:
  """
  Comment persistence.

  Edit/delete ownership is checked here and has no root bypass: only the
  author may change or remove a comment.
  """

  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def get(self, comment_id: int) -> Comment | None:
    res = await self.db.execute(select(Comment).where(Comment.id == comment_id))
    return res.scalar_one_or_none()

  async def get_row(self, comment_id: int) -> CommentRow | None:
    res = await self.db.execute(
      select(Comment, User.username, User.name)
      .outerjoin(User, User.id == Comment.created_by)
      .where(Comment.id == comment_id)
      .execution_options(populate_existing=True)
    )
    row = res.one_or_none()
    return CommentRow(*row) if row else None

  async def list_for_task(self, task_id: int) -> list[CommentRow]:
    res = await self.db.execute(
      select(Comment, User.username, User.name)
      .outerjoin(User, User.id == Comment.created_by)
      .where(Comment.task_id == task_id)
      .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return [CommentRow(*row) for row in res.all()]

  async def create(self, *, task_id: int, content: str, created_by: int) -> Comment:
    c = Comment(task_id=task_id, content=content, created_by=created_by)
    self.db.add(c)
    await self.db.flush()
    return c

  async def _owned(self, comment_id: int, user_id: int, verb: str) -> Comment:
    c = await self.get(comment_id)
    if not c:
      raise NotFound("Comment not found")
    if c.created_by != user_id:
      raise Forbidden(f"You can only {verb} your own comments")
    return c

  async def update(self, comment_id: int, *, user_id: int, content: str) -> Comment:
    c = await self._owned(comment_id, user_id, "update")
    c.content = content
    c.updated_at = utcnow()
    await self.db.flush()
    return c

  async def delete(self, comment_id: int, *, user_id: int) -> None:
    await self._owned(comment_id, user_id, "delete")
    await self.db.execute(delete(Comment).where(Comment.id == comment_id))
