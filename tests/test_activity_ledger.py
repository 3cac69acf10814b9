from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.activity import ActivityLedger, FieldChange, TaskSnapshot, compute_task_changes
from kanban.models import Activity, User, utcnow
from kanban.stores.activities import ActivityStore


def _snap(**overrides) -> TaskSnapshot:
  base = dict(
    id=1,
    title="Draft plan",
    description=None,
    priority="low",
    assigned_to=None,
    column_id=1,
    created_by=1,
  )
  base.update(overrides)
  return TaskSnapshot(**base)


def test_absent_fields_produce_no_changes() -> None:
  assert compute_task_changes(_snap(), {}) == []


def test_identical_values_produce_no_changes() -> None:
  snap = _snap(description="same", assigned_to=3)
  values = {"title": "Draft plan", "description": "same", "priority": "low", "assigned_to": 3}
  assert compute_task_changes(snap, values, assignee_labels={3: "Carol"}) == []


def test_empty_description_uses_sentinel_and_blank_to_none_is_no_change() -> None:
  assert compute_task_changes(_snap(), {"description": "Now described"}) == [
    FieldChange("description", "(empty)", "Now described")
  ]
  assert compute_task_changes(_snap(description=""), {"description": None}) == []


def test_assignee_labels_fall_back_to_unassigned() -> None:
  changes = compute_task_changes(_snap(assigned_to=2), {"assigned_to": 5}, assignee_labels={2: "Alice", 5: "Eve"})
  assert changes == [FieldChange("assignee", "Alice", "Eve")]
  changes = compute_task_changes(_snap(), {"assigned_to": 5}, assignee_labels={5: "Eve"})
  assert changes == [FieldChange("assignee", "Unassigned", "Eve")]


@pytest.mark.anyio
async def test_specialised_records_use_fixed_field_names(db: AsyncSession, alice: User) -> None:
  ledger = ActivityLedger(db)
  await ledger.record_assigned("task", 10, alice.id, None, "Alice Smith")
  await ledger.record_priority_changed("task", 10, alice.id, "low", "urgent")
  await ledger.record_moved("task", 10, alice.id, "Todo", "Done")

  rows = await ActivityStore(db).list_for_entity("task", 10)
  got = [(r.activity.action, r.activity.field_name, r.activity.old_value, r.activity.new_value) for r in rows]
  # Newest first.
  assert got == [
    ("moved", "column", "Todo", "Done"),
    ("priority_changed", "priority", "low", "urgent"),
    ("assigned", "assignee", "Unassigned", "Alice Smith"),
  ]
  assert {(r.username, r.name) for r in rows} == {("alice", "Alice Smith")}


@pytest.mark.anyio
async def test_recent_activity_is_paginated(db: AsyncSession, alice: User) -> None:
  ledger = ActivityLedger(db)
  for i in range(5):
    await ledger.record_created("task", i + 1, alice.id, f"Task {i}")
  store = ActivityStore(db)

  page = await store.list_recent(limit=2, offset=1)
  assert [r.activity.new_value for r in page] == ["Task 3", "Task 2"]
  assert len(await store.list_recent(limit=0)) == 5

  one = await store.get(page[0].activity.id)
  assert one is not None and one.activity.entity_id == 4


@pytest.mark.anyio
async def test_purge_removes_only_old_rows(db: AsyncSession, alice: User) -> None:
  db.add(Activity(entity_type="task", entity_id=1, action="created", user_id=alice.id, created_at=utcnow() - timedelta(days=120)))
  db.add(Activity(entity_type="task", entity_id=2, action="created", user_id=alice.id, created_at=utcnow() - timedelta(days=5)))
  await db.commit()

  removed = await ActivityLedger(db).purge_older_than(90)

  assert removed == 1
  res = await db.execute(select(Activity.entity_id))
  assert res.scalars().all() == [2]
