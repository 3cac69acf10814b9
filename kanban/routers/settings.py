from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.deps import get_current_user, get_db, require_root
from kanban.models import User
from kanban.schemas import SettingsOut, SettingsUpdateIn
from kanban.serializers import settings_out
from kanban.stores.settings import SettingsStore

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsOut)
async def get_settings(_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> SettingsOut:
  s = await SettingsStore(db).get()
  await db.commit()
  return settings_out(s)


@router.put("", response_model=SettingsOut)
async def update_settings(
  payload: SettingsUpdateIn,
  _root: User = Depends(require_root),
  db: AsyncSession = Depends(get_db),
) -> SettingsOut:
  s = await SettingsStore(db).update(
    app_name=payload.appName,
    app_description=payload.appDescription,
    default_theme=payload.defaultTheme,
    enable_notifications=payload.enableNotifications,
  )
  await db.commit()
  return settings_out(s)


@router.post("/reset", response_model=SettingsOut)
async def reset_settings(_root: User = Depends(require_root), db: AsyncSession = Depends(get_db)) -> SettingsOut:
  s = await SettingsStore(db).reset_to_defaults()
  await db.commit()
  return settings_out(s)
