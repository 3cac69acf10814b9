from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.deps import get_current_user, get_db
from kanban.models import ChecklistItem, User
from kanban.schemas import ChecklistItemCreateIn, ChecklistItemOut, ChecklistItemUpdateIn
from kanban.serializers import checklist_item_out
from kanban.stores.checklists import ChecklistStore
from kanban.stores.tasks import TaskStore

router = APIRouter(tags=["checklists"])


async def _require_task(db: AsyncSession, task_id: int) -> None:
  if not await TaskStore(db).get(task_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")


async def _require_item(db: AsyncSession, item_id: int) -> ChecklistItem:
  item = await ChecklistStore(db).get(item_id)
  if not item:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checklist item not found")
  return item


@router.get("/tasks/{task_id}/checklist", response_model=list[ChecklistItemOut])
async def list_checklist(
  task_id: int,
  _user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[ChecklistItemOut]:
  await _require_task(db, task_id)
  return [checklist_item_out(i) for i in await ChecklistStore(db).list_for_task(task_id)]


@router.post("/tasks/{task_id}/checklist", response_model=ChecklistItemOut, status_code=status.HTTP_201_CREATED)
async def create_checklist_item(
  task_id: int,
  payload: ChecklistItemCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ChecklistItemOut:
  await _require_task(db, task_id)
  item = await ChecklistStore(db).create(task_id=task_id, title=payload.title, created_by=user.id)
  await db.commit()
  return checklist_item_out(item)


@router.patch("/checklist/{item_id}", response_model=ChecklistItemOut)
async def update_checklist_item(
  item_id: int,
  payload: ChecklistItemUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ChecklistItemOut:
  store = ChecklistStore(db)
  item = await _require_item(db, item_id)
  if payload.title is not None:
    await store.rename(item, payload.title)
  if payload.completed is not None:
    await store.set_completed(item, user_id=user.id, completed=payload.completed)
  await db.commit()
  return checklist_item_out(item)


@router.delete("/checklist/{item_id}")
async def delete_checklist_item(
  item_id: int,
  _user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> dict:
  await _require_item(db, item_id)
  await ChecklistStore(db).delete(item_id)
  await db.commit()
  return {"ok": True}
