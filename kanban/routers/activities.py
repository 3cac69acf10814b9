from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.deps import get_current_user, get_db
from kanban.models import User
from kanban.schemas import ActivityOut
from kanban.serializers import activity_out
from kanban.stores.activities import ActivityStore

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=list[ActivityOut])
async def list_recent_activities(
  limit: int = Query(default=50, ge=1, le=100),
  offset: int = Query(default=0, ge=0),
  _user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[ActivityOut]:
  return [activity_out(r) for r in await ActivityStore(db).list_recent(limit=limit, offset=offset)]


@router.get("/task/{task_id}", response_model=list[ActivityOut])
async def list_task_activities(
  task_id: int,
  _user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[ActivityOut]:
  # History stays readable after the task is deleted.
  return [activity_out(r) for r in await ActivityStore(db).list_for_entity("task", task_id)]


@router.get("/{activity_id}", response_model=ActivityOut)
async def get_activity(
  activity_id: int,
  _user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ActivityOut:
  row = await ActivityStore(db).get(activity_id)
  if not row:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
  return activity_out(row)
