from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_column, make_task
from kanban.db import build_sessionmaker
from kanban.errors import Conflict, DuplicateTitle, HasTasks, InvalidReference, LastColumn, NotFound, SameColumn
from kanban.models import Activity, BoardColumn, User
from kanban.permissions import Actor
from kanban.services import ColumnService, TaskService


@pytest.mark.anyio
async def test_last_column_cannot_be_deleted(db: AsyncSession, root: User) -> None:
  only = await make_column(db, "Only")
  with pytest.raises(LastColumn) as exc:
    await ColumnService(db).delete_column(Actor.from_user(root), only.id)
  assert str(exc.value) == "cannot delete the last column"


@pytest.mark.anyio
async def test_last_column_with_tasks_is_still_a_conflict(db: AsyncSession, root: User, alice: User) -> None:
  only = await make_column(db, "Only")
  await make_task(db, only, alice, "Some task")
  with pytest.raises(Conflict):
    await ColumnService(db).delete_column(Actor.from_user(root), only.id)


@pytest.mark.anyio
async def test_column_with_tasks_cannot_be_deleted(db: AsyncSession, root: User, alice: User) -> None:
  busy = await make_column(db, "Busy")
  await make_column(db, "Spare")
  await make_task(db, busy, alice, "Blocking task")
  with pytest.raises(HasTasks) as exc:
    await ColumnService(db).delete_column(Actor.from_user(root), busy.id)
  assert "existing tasks" in str(exc.value)


@pytest.mark.anyio
async def test_empty_column_deletion_succeeds_and_is_recorded(db: AsyncSession, root: User) -> None:
  await make_column(db, "Keep")
  gone = await make_column(db, "Gone")
  await ColumnService(db).delete_column(Actor.from_user(root), gone.id)

  res = await db.execute(select(Activity).where(Activity.entity_type == "column", Activity.entity_id == gone.id))
  acts = res.scalars().all()
  assert [(a.action, a.old_value) for a in acts] == [("deleted", "Gone")]


@pytest.mark.anyio
async def test_delete_unknown_column_is_not_found(db: AsyncSession, root: User) -> None:
  await make_column(db, "Keep")
  with pytest.raises(NotFound):
    await ColumnService(db).delete_column(Actor.from_user(root), 777)


@pytest.mark.anyio
async def test_archived_columns_do_not_count_towards_last_column(db: AsyncSession, root: User) -> None:
  svc = ColumnService(db)
  actor = Actor.from_user(root)
  active = await make_column(db, "Active")
  archived = await make_column(db, "Old")
  await svc.archive_column(actor, archived.id)

  with pytest.raises(LastColumn):
    await svc.delete_column(actor, active.id)
  with pytest.raises(LastColumn):
    await svc.archive_column(actor, active.id)
  await svc.delete_column(actor, archived.id)


@pytest.mark.anyio
async def test_duplicate_column_title_rejected(db: AsyncSession, root: User) -> None:
  svc = ColumnService(db)
  actor = Actor.from_user(root)
  c = await svc.create_column(actor, title="Review")
  review_id = c.id
  assert c.position == 1
  with pytest.raises(DuplicateTitle):
    await svc.create_column(actor, title="review")
  other = await svc.create_column(actor, title="Done", colors="bg-green-100")
  done_id = other.id
  with pytest.raises(DuplicateTitle):
    await svc.update_column(actor, done_id, title="Review")
  same = await svc.update_column(actor, review_id, title="Review")
  assert same.title == "Review"


@pytest.mark.anyio
async def test_drain_validates_columns(db: AsyncSession, root: User) -> None:
  svc = ColumnService(db)
  actor = Actor.from_user(root)
  col = await make_column(db, "Todo")
  with pytest.raises(SameColumn):
    await svc.drain_column(actor, col.id, col.id)
  with pytest.raises(InvalidReference):
    await svc.drain_column(actor, col.id, 999)
  with pytest.raises(InvalidReference):
    await svc.drain_column(actor, 999, col.id)


@pytest.mark.anyio
async def test_archived_column_rejects_new_tasks(db: AsyncSession, root: User, alice: User) -> None:
  svc = ColumnService(db)
  actor = Actor.from_user(root)
  await make_column(db, "Open")
  closed = await make_column(db, "Closed")
  await svc.archive_column(actor, closed.id)

  with pytest.raises(InvalidReference):
    await TaskService(db).create_task(Actor.from_user(alice), title="Nope", column_id=closed.id)

  restored = await svc.unarchive_column(actor, closed.id)
  assert restored.deleted_at is None
  acts = (
    await db.execute(
      select(Activity.action, Activity.field_name, Activity.old_value, Activity.new_value)
      .where(Activity.entity_type == "column", Activity.entity_id == closed.id)
      .order_by(Activity.id)
    )
  ).all()
  assert [tuple(a) for a in acts] == [
    ("updated", "status", "active", "archived"),
    ("updated", "status", "archived", "active"),
  ]
  again = await svc.unarchive_column(actor, closed.id)
  assert again.deleted_at is None
  t = await make_task(db, closed, alice, "Now allowed")
  assert t.column_id == closed.id


@pytest.mark.anyio
async def test_board_lists_active_columns_with_ordered_tasks(db: AsyncSession, root: User, alice: User) -> None:
  svc = ColumnService(db)
  todo = await make_column(db, "Todo")
  done = await make_column(db, "Done")
  t1 = await make_task(db, todo, alice, "First")
  t2 = await make_task(db, todo, alice, "Second")
  await TaskService(db).move_task(t2.id, todo.id, 1)

  board = await svc.board()
  assert [c.id for c, _ in board] == [todo.id, done.id]
  assert [t.id for t in board[0][1]] == [t2.id, t1.id]
  assert board[1][1] == []

  counts = await svc.list_with_task_counts()
  assert [(c.title, n) for c, n in counts] == [("Todo", 2), ("Done", 0)]


@pytest.mark.anyio
async def test_concurrent_deletes_keep_one_column(engine, db: AsyncSession, root: User) -> None:
  alpha = await make_column(db, "Alpha")
  beta = await make_column(db, "Beta")
  maker = build_sessionmaker(engine)

  async def delete(column_id: int) -> None:
    async with maker() as s:
      await ColumnService(s).delete_column(Actor.from_user(root), column_id)

  results = await asyncio.gather(delete(alpha.id), delete(beta.id), return_exceptions=True)
  assert sorted(type(r).__name__ for r in results) == ["LastColumn", "NoneType"]

  remaining = (await db.execute(select(BoardColumn.id))).scalars().all()
  assert len(remaining) == 1
