from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, status

from kanban.deps import current_actor, get_task_service, require_root
from kanban.models import User
from kanban.permissions import Actor
from kanban.schemas import Priority, TaskCreateIn, TaskListOut, TaskMoveIn, TaskOut, TaskUpdateIn
from kanban.serializers import task_out, task_row_out
from kanban.services import TaskService
from kanban.stores.tasks import TaskFilters

router = APIRouter(tags=["tasks"])

# camelCase request field -> Task column
_UPDATE_FIELDS = {
  "title": "title",
  "description": "description",
  "columnId": "column_id",
  "assignedTo": "assigned_to",
  "dueDate": "due_date",
  "priority": "priority",
}
_NON_NULLABLE = {"title", "priority", "column_id"}


def _update_values(payload: TaskUpdateIn) -> dict[str, Any]:
  values: dict[str, Any] = {}
  for name in payload.model_fields_set:
    key = _UPDATE_FIELDS.get(name)
    if key is None:
      continue
    v = getattr(payload, name)
    if v is None and key in _NON_NULLABLE:
      continue
    values[key] = v
  return values


@router.get("/tasks", response_model=TaskListOut)
async def list_tasks(
  search: str | None = Query(default=None, max_length=200),
  column_id: int | None = Query(default=None),
  assigned_to: int | None = Query(default=None),
  created_by: int | None = Query(default=None),
  priority: Priority | None = Query(default=None),
  due_from: datetime | None = Query(default=None),
  due_to: datetime | None = Query(default=None),
  created_from: datetime | None = Query(default=None),
  created_to: datetime | None = Query(default=None),
  order_by: Literal["position", "created_at", "updated_at", "title", "due_date"] = Query(default="position"),
  order_dir: Literal["asc", "desc"] = Query(default="asc"),
  page: int = Query(default=1, ge=1),
  page_size: int = Query(default=20, ge=1, le=100),
  _actor: Actor = Depends(current_actor),
  svc: TaskService = Depends(get_task_service),
) -> TaskListOut:
  f = TaskFilters(
    search=search,
    column_id=column_id,
    assigned_to=assigned_to,
    created_by=created_by,
    priority=priority,
    due_from=due_from,
    due_to=due_to,
    created_from=created_from,
    created_to=created_to,
    order_by=order_by,
    order_dir=order_dir,
    page=page,
    page_size=page_size,
  )
  rows, total = await svc.list_tasks(f)
  return TaskListOut(
    tasks=[task_row_out(r) for r in rows],
    total=total,
    page=page,
    pageSize=page_size,
    totalPages=math.ceil(total / page_size) if total else 0,
  )


@router.post("/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
  payload: TaskCreateIn,
  actor: Actor = Depends(current_actor),
  svc: TaskService = Depends(get_task_service),
) -> TaskOut:
  t = await svc.create_task(
    actor,
    title=payload.title.strip(),
    column_id=payload.columnId,
    description=payload.description,
    assigned_to=payload.assignedTo,
    due_date=payload.dueDate,
    priority=payload.priority,
  )
  return task_out(t)


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(
  task_id: int,
  _actor: Actor = Depends(current_actor),
  svc: TaskService = Depends(get_task_service),
) -> TaskOut:
  return task_row_out(await svc.get_task(task_id))


@router.put("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
  task_id: int,
  payload: TaskUpdateIn,
  actor: Actor = Depends(current_actor),
  svc: TaskService = Depends(get_task_service),
) -> TaskOut:
  return task_out(await svc.update_task(actor, task_id, _update_values(payload)))


@router.post("/tasks/{task_id}/move", response_model=TaskOut)
async def move_task(
  task_id: int,
  payload: TaskMoveIn,
  actor: Actor = Depends(current_actor),
  svc: TaskService = Depends(get_task_service),
) -> TaskOut:
  return task_out(await svc.move_task(task_id, payload.columnId, payload.position, actor=actor))


@router.delete("/tasks/{task_id}")
async def delete_task(
  task_id: int,
  actor: Actor = Depends(current_actor),
  svc: TaskService = Depends(get_task_service),
) -> dict:
  await svc.delete_task(actor, task_id)
  return {"ok": True}


@router.put("/admin/tasks/{task_id}/force-update", response_model=TaskOut)
async def force_update_task(
  task_id: int,
  payload: TaskUpdateIn,
  root: User = Depends(require_root),
  svc: TaskService = Depends(get_task_service),
) -> TaskOut:
  return task_out(await svc.update_task(Actor.from_user(root), task_id, _update_values(payload)))


@router.delete("/admin/tasks/{task_id}")
async def force_delete_task(
  task_id: int,
  root: User = Depends(require_root),
  svc: TaskService = Depends(get_task_service),
) -> dict:
  await svc.delete_task(Actor.from_user(root), task_id)
  return {"ok": True}
