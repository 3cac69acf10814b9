from __future__ import annotations

from fastapi import APIRouter, Depends, status

from kanban.deps import current_actor, get_comment_service
from kanban.permissions import Actor
from kanban.schemas import CommentCreateIn, CommentOut, CommentUpdateIn
from kanban.serializers import comment_out
from kanban.services import CommentService

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def create_comment(
  payload: CommentCreateIn,
  actor: Actor = Depends(current_actor),
  svc: CommentService = Depends(get_comment_service),
) -> CommentOut:
  return comment_out(await svc.create_comment(actor, task_id=payload.taskId, content=payload.content))


@router.get("/task/{task_id}", response_model=list[CommentOut])
async def list_task_comments(
  task_id: int,
  _actor: Actor = Depends(current_actor),
  svc: CommentService = Depends(get_comment_service),
) -> list[CommentOut]:
  return [comment_out(r) for r in await svc.list_for_task(task_id)]


@router.get("/{comment_id}", response_model=CommentOut)
async def get_comment(
  comment_id: int,
  _actor: Actor = Depends(current_actor),
  svc: CommentService = Depends(get_comment_service),
) -> CommentOut:
  return comment_out(await svc.get_comment(comment_id))


@router.put("/{comment_id}", response_model=CommentOut)
async def update_comment(
  comment_id: int,
  payload: CommentUpdateIn,
  actor: Actor = Depends(current_actor),
  svc: CommentService = Depends(get_comment_service),
) -> CommentOut:
  return comment_out(await svc.update_comment(actor, comment_id, content=payload.content))


@router.delete("/{comment_id}")
async def delete_comment(
  comment_id: int,
  actor: Actor = Depends(current_actor),
  svc: CommentService = Depends(get_comment_service),
) -> dict:
  await svc.delete_comment(actor, comment_id)
  return {"ok": True}
