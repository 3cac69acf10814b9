from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_column, make_task
from kanban.errors import Forbidden, NotFound
from kanban.models import Activity, Comment, User
from kanban.permissions import Actor
from kanban.services import CommentService


@pytest.mark.anyio
async def test_comment_is_recorded_on_the_task(db: AsyncSession, alice: User, bob: User) -> None:
  todo = await make_column(db, "Todo")
  t = await make_task(db, todo, alice, "Draft plan")

  row = await CommentService(db).create_comment(Actor.from_user(bob), task_id=t.id, content="  Looks   good  ")

  assert (row.comment.content, row.username) == ("  Looks   good  ", "bob")
  res = await db.execute(select(Activity).where(Activity.action == "commented"))
  a = res.scalar_one()
  assert (a.entity_type, a.entity_id, a.user_id, a.new_value) == ("task", t.id, bob.id, "Looks good")


@pytest.mark.anyio
async def test_comment_on_missing_task_is_not_found(db: AsyncSession, alice: User) -> None:
  with pytest.raises(NotFound):
    await CommentService(db).create_comment(Actor.from_user(alice), task_id=31337, content="hello")


@pytest.mark.anyio
async def test_only_author_may_edit_or_delete_even_for_root(db: AsyncSession, root: User, alice: User, bob: User) -> None:
  todo = await make_column(db, "Todo")
  t = await make_task(db, todo, alice, "Draft plan")
  svc = CommentService(db)
  row = await svc.create_comment(Actor.from_user(bob), task_id=t.id, content="mine")
  cid = row.comment.id

  for other in (alice, root):
    with pytest.raises(Forbidden):
      await svc.update_comment(Actor.from_user(other), cid, content="theirs")
    with pytest.raises(Forbidden):
      await svc.delete_comment(Actor.from_user(other), cid)

  edited = await svc.update_comment(Actor.from_user(bob), cid, content="mine, edited")
  assert edited.comment.content == "mine, edited"
  await svc.delete_comment(Actor.from_user(bob), cid)
  assert (await db.execute(select(Comment.id))).scalars().all() == []


@pytest.mark.anyio
async def test_list_comments_for_task_in_creation_order(db: AsyncSession, alice: User, bob: User) -> None:
  todo = await make_column(db, "Todo")
  t = await make_task(db, todo, alice, "Draft plan")
  svc = CommentService(db)
  await svc.create_comment(Actor.from_user(alice), task_id=t.id, content="one")
  await svc.create_comment(Actor.from_user(bob), task_id=t.id, content="two")

  rows = await svc.list_for_task(t.id)
  assert [(r.comment.content, r.username) for r in rows] == [("one", "alice"), ("two", "bob")]
  with pytest.raises(NotFound):
    await svc.list_for_task(999)
