from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.deps import get_db
from kanban.routers.auth import issue_tokens
from kanban.schemas import SetupIn, SetupStatusOut, TokenOut
from kanban.security import hash_password
from kanban.stores.settings import SettingsStore
from kanban.stores.users import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/setup", tags=["setup"])


@router.get("/status", response_model=SetupStatusOut)
async def setup_status(db: AsyncSession = Depends(get_db)) -> SetupStatusOut:
  return SetupStatusOut(setupComplete=await UserStore(db).root_exists())


@router.get("/app-name")
async def app_name(db: AsyncSession = Depends(get_db)) -> dict:
  s = await SettingsStore(db).get()
  return {"appName": s.app_name, "appDescription": s.app_description}


@router.post("", response_model=TokenOut)
async def run_setup(payload: SetupIn, db: AsyncSession = Depends(get_db)) -> TokenOut:
  users = UserStore(db)
  if await users.root_exists():
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Setup already completed")
  if await users.username_exists(payload.username):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
  u = await users.create(
    username=payload.username,
    password_hash=hash_password(payload.password),
    name=payload.name,
    designation=payload.designation,
    is_root=True,
  )
  out = await issue_tokens(db, u)
  await db.commit()
  logger.info("Setup completed; root user %s created", u.username)
  return out
