from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.models import DEFAULT_APP_DESCRIPTION, DEFAULT_APP_NAME, DEFAULT_THEME, AppSettings, utcnow


class SettingsStore:
  """Singleton application settings (row id 1)."""

  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def get(self) -> AppSettings:
    res = await self.db.execute(select(AppSettings).where(AppSettings.id == 1))
    s = res.scalar_one_or_none()
    if s is None:
      s = AppSettings(id=1)
      self.db.add(s)
      await self.db.flush()
    return s

  async def update(
    self,
    *,
    app_name: str | None = None,
    app_description: str | None = None,
    default_theme: str | None = None,
    enable_notifications: bool | None = None,
  ) -> AppSettings:
    s = await self.get()
    if app_name is not None:
      s.app_name = app_name.strip()
    if app_description is not None:
      s.app_description = app_description.strip()
    if default_theme is not None:
      s.default_theme = default_theme
    if enable_notifications is not None:
      s.enable_notifications = enable_notifications
    s.updated_at = utcnow()
    await self.db.flush()
    return s

  async def reset_to_defaults(self) -> AppSettings:
    return await self.update(
      app_name=DEFAULT_APP_NAME,
      app_description=DEFAULT_APP_DESCRIPTION,
      default_theme=DEFAULT_THEME,
      enable_notifications=True,
    )
