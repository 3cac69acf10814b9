from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.db import SessionLocal
from kanban.models import User
from kanban.permissions import Actor
from kanban.security import ACCESS, TokenError, decode_token
from kanban.services import ColumnService, CommentService, TaskService
from kanban.stores.users import UserStore

bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
  async with SessionLocal() as session:
    yield session


async def get_current_user(
  db: AsyncSession = Depends(get_db),
  creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> User:
  if not creds or not creds.credentials:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"}
    )
  try:
    claims = decode_token(creds.credentials, expected_type=ACCESS)
  except TokenError:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token", headers={"WWW-Authenticate": "Bearer"}
    )
  u = await UserStore(db).get(int(claims["sub"]), include_inactive=True)
  if not u:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
  if not u.is_active:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User disabled")
  return u


async def require_root(user: User = Depends(get_current_user)) -> User:
  if not user.is_root:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Root access required")
  return user


async def current_actor(user: User = Depends(get_current_user)) -> Actor:
  return Actor.from_user(user)


async def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
  return TaskService(db)


async def get_column_service(db: AsyncSession = Depends(get_db)) -> ColumnService:
  return ColumnService(db)


async def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
  return CommentService(db)


def client_ip(request: Request) -> str | None:
  return request.client.host if request.client else None
