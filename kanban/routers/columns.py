from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from kanban.deps import current_actor, get_column_service, require_root
from kanban.models import User
from kanban.permissions import Actor
from kanban.schemas import (
  BoardColumnOut,
  BoardOut,
  ColumnCreateIn,
  ColumnDrainIn,
  ColumnDrainOut,
  ColumnOut,
  ColumnReorderIn,
  ColumnUpdateIn,
)
from kanban.serializers import column_out, task_out
from kanban.services import ColumnService

router = APIRouter(tags=["columns"])


@router.get("/board", response_model=BoardOut)
async def get_board(
  _actor: Actor = Depends(current_actor),
  svc: ColumnService = Depends(get_column_service),
) -> BoardOut:
  board = await svc.board()
  return BoardOut(
    columns=[BoardColumnOut(column=column_out(c, task_count=len(tasks)), tasks=[task_out(t) for t in tasks]) for c, tasks in board]
  )


@router.get("/columns", response_model=list[ColumnOut])
async def list_columns(
  show_archived: bool = Query(default=False),
  _actor: Actor = Depends(current_actor),
  svc: ColumnService = Depends(get_column_service),
) -> list[ColumnOut]:
  return [column_out(c) for c in await svc.list_columns(show_archived=show_archived)]


@router.get("/columns/with-counts", response_model=list[ColumnOut])
async def list_columns_with_counts(
  show_archived: bool = Query(default=False),
  _root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> list[ColumnOut]:
  rows = await svc.list_with_task_counts(show_archived=show_archived)
  return [column_out(c, task_count=n) for c, n in rows]


@router.post("/columns", response_model=ColumnOut, status_code=status.HTTP_201_CREATED)
async def create_column(
  payload: ColumnCreateIn,
  root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> ColumnOut:
  c = await svc.create_column(Actor.from_user(root), title=payload.title, colors=payload.colors)
  return column_out(c)


@router.post("/columns/reorder")
async def reorder_columns(
  payload: ColumnReorderIn,
  _root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> dict:
  await svc.reorder_columns([(o.id, o.position) for o in payload.columns])
  return {"ok": True}


@router.get("/columns/{column_id}", response_model=ColumnOut)
async def get_column(
  column_id: int,
  _actor: Actor = Depends(current_actor),
  svc: ColumnService = Depends(get_column_service),
) -> ColumnOut:
  return column_out(await svc.get_column(column_id))


@router.put("/columns/{column_id}", response_model=ColumnOut)
async def update_column(
  column_id: int,
  payload: ColumnUpdateIn,
  root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> ColumnOut:
  c = await svc.update_column(Actor.from_user(root), column_id, title=payload.title, colors=payload.colors)
  return column_out(c)


@router.delete("/columns/{column_id}")
async def delete_column(
  column_id: int,
  root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> dict:
  await svc.delete_column(Actor.from_user(root), column_id)
  return {"ok": True}


@router.post("/columns/{column_id}/archive", response_model=ColumnOut)
async def archive_column(
  column_id: int,
  root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> ColumnOut:
  return column_out(await svc.archive_column(Actor.from_user(root), column_id))


@router.post("/columns/{column_id}/unarchive", response_model=ColumnOut)
async def unarchive_column(
  column_id: int,
  root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> ColumnOut:
  return column_out(await svc.unarchive_column(Actor.from_user(root), column_id))


@router.post("/columns/{column_id}/move-tasks", response_model=ColumnDrainOut)
async def move_all_tasks(
  column_id: int,
  payload: ColumnDrainIn,
  root: User = Depends(require_root),
  svc: ColumnService = Depends(get_column_service),
) -> ColumnDrainOut:
  moved = await svc.drain_column(Actor.from_user(root), column_id, payload.toColumnId)
  return ColumnDrainOut(moved=moved)
