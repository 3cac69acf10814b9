from __future__ import annotations

import asyncio
from collections import Counter

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_column, make_task
from kanban.db import build_sessionmaker
from kanban.errors import InvalidReference, NotFound
from kanban.models import BoardColumn, Task, User
from kanban.ordering import OrderingEngine
from kanban.permissions import Actor
from kanban.services import ColumnService, TaskService


async def _positions(db: AsyncSession, column_id: int) -> list[tuple[int, int]]:
  res = await db.execute(
    select(Task.id, Task.position).where(Task.column_id == column_id).order_by(Task.position.asc(), Task.id.asc())
  )
  return [(r[0], r[1]) for r in res.all()]


@pytest.mark.anyio
async def test_first_task_in_empty_column_gets_position_one(db: AsyncSession, alice: User) -> None:
  todo = await make_column(db, "Todo")
  t1 = await make_task(db, todo, alice, "Draft plan")
  assert t1.position == 1
  t2 = await make_task(db, todo, alice, "Review plan")
  assert t2.position == 2


@pytest.mark.anyio
async def test_move_within_column_keeps_positions_unique(db: AsyncSession, alice: User) -> None:
  todo = await make_column(db, "Todo")
  a = await make_task(db, todo, alice, "Task A")
  b = await make_task(db, todo, alice, "Task B")
  c = await make_task(db, todo, alice, "Task C")

  await TaskService(db).move_task(a.id, todo.id, 3)

  rows = await _positions(db, todo.id)
  assert len({p for _, p in rows}) == 3
  assert [tid for tid, _ in rows] == [b.id, a.id, c.id]
  assert dict(rows)[a.id] == 3


@pytest.mark.anyio
async def test_move_into_other_column_shifts_tail_and_leaves_source_gap(db: AsyncSession, alice: User) -> None:
  todo = await make_column(db, "Todo")
  doing = await make_column(db, "Doing")
  a = await make_task(db, todo, alice, "Task A")
  b = await make_task(db, todo, alice, "Task B")
  c = await make_task(db, todo, alice, "Task C")
  x = await make_task(db, doing, alice, "Task X")
  y = await make_task(db, doing, alice, "Task Y")

  await TaskService(db).move_task(b.id, doing.id, 1)

  assert await _positions(db, doing.id) == [(b.id, 1), (x.id, 2), (y.id, 3)]
  # Source column is not compacted.
  assert await _positions(db, todo.id) == [(a.id, 1), (c.id, 3)]


@pytest.mark.anyio
async def test_repeated_moves_never_duplicate_positions_in_target(db: AsyncSession, alice: User) -> None:
  left = await make_column(db, "Left")
  right = await make_column(db, "Right")
  tasks = [await make_task(db, left, alice, f"Task {i}") for i in range(6)]
  svc = TaskService(db)

  for i, (t, pos) in enumerate(zip(tasks, [1, 1, 2, 5, 3, 1])):
    target = right if i % 2 == 0 else left
    await svc.move_task(t.id, target.id, pos)
    for col in (left, right):
      counts = Counter(p for _, p in await _positions(db, col.id))
      assert all(n == 1 for n in counts.values()), counts


@pytest.mark.anyio
async def test_move_task_rejects_unknown_task_and_column(db: AsyncSession, alice: User) -> None:
  todo = await make_column(db, "Todo")
  t = await make_task(db, todo, alice, "Task A")
  svc = TaskService(db)
  with pytest.raises(NotFound):
    await svc.move_task(9999, todo.id, 1)
  with pytest.raises(InvalidReference):
    await svc.move_task(t.id, 9999, 1)
  assert await _positions(db, todo.id) == [(t.id, 1)]


@pytest.mark.anyio
async def test_drain_preserves_relative_order_then_source_can_be_deleted(db: AsyncSession, root: User, alice: User) -> None:
  a_col = await make_column(db, "Column A")
  b_col = await make_column(db, "Column B")
  first = await make_task(db, a_col, alice, "First")
  second = await make_task(db, a_col, alice, "Second")
  svc = ColumnService(db)
  actor = Actor.from_user(root)

  moved = await svc.drain_column(actor, a_col.id, b_col.id)

  assert moved == 2
  assert await _positions(db, b_col.id) == [(first.id, 1), (second.id, 2)]
  assert await _positions(db, a_col.id) == []
  await svc.delete_column(actor, a_col.id)
  res = await db.execute(select(BoardColumn.id))
  assert list(res.scalars().all()) == [b_col.id]


@pytest.mark.anyio
async def test_drain_appends_after_destination_tail(db: AsyncSession, root: User, alice: User) -> None:
  src = await make_column(db, "Source")
  dest = await make_column(db, "Dest")
  d1 = await make_task(db, dest, alice, "Existing 1")
  d2 = await make_task(db, dest, alice, "Existing 2")
  s1 = await make_task(db, src, alice, "Moved 1")
  s2 = await make_task(db, src, alice, "Moved 2")
  s3 = await make_task(db, src, alice, "Moved 3")
  # Make the source sparse first; relative order must still survive.
  await TaskService(db).move_task(s2.id, src.id, 5)

  await ColumnService(db).drain_column(Actor.from_user(root), src.id, dest.id)

  ids = [tid for tid, _ in await _positions(db, dest.id)]
  assert ids == [d1.id, d2.id, s1.id, s3.id, s2.id]


@pytest.mark.anyio
async def test_reorder_columns_is_all_or_nothing(db: AsyncSession, root: User) -> None:
  c1 = await make_column(db, "One")
  c2 = await make_column(db, "Two")
  svc = ColumnService(db)

  await svc.reorder_columns([(c1.id, 2), (c2.id, 1)])
  assert [c.id for c in await svc.list_columns()] == [c2.id, c1.id]

  with pytest.raises(NotFound):
    await svc.reorder_columns([(c1.id, 1), (c2.id, 2), (4242, 3)])
  res = await db.execute(select(BoardColumn.id, BoardColumn.position).order_by(BoardColumn.id))
  assert [tuple(r) for r in res.all()] == [(c1.id, 2), (c2.id, 1)]


@pytest.mark.anyio
async def test_next_column_position_appends(db: AsyncSession) -> None:
  engine = OrderingEngine(db)
  assert await engine.next_column_position() == 1
  await make_column(db, "One")
  await make_column(db, "Two")
  assert await engine.next_column_position() == 3


@pytest.mark.anyio
async def test_concurrent_creates_get_distinct_positions(engine, db: AsyncSession, alice: User) -> None:
  todo = await make_column(db, "Todo")
  maker = build_sessionmaker(engine)

  async def create(n: int) -> int:
    async with maker() as s:
      t = await TaskService(s).create_task(Actor.from_user(alice), title=f"Parallel {n}", column_id=todo.id)
      return t.position

  returned = await asyncio.gather(*(create(n) for n in range(5)))
  assert sorted(returned) == [1, 2, 3, 4, 5]
  assert sorted(p for _, p in await _positions(db, todo.id)) == [1, 2, 3, 4, 5]
