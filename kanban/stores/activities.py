from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.models import Activity, User, utcnow


@dataclass
class ActivityRow:
  activity: Activity
  username: str | None = None
  name: str | None = None


def _with_user() -> Select:
  return select(Activity, User.username, User.name).outerjoin(User, User.id == Activity.user_id)


class ActivityStore:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def add(
    self,
    *,
    entity_type: str,
    entity_id: int,
    action: str,
    user_id: int | None,
    field_name: str | None = None,
    old_value: str | None = None,
    new_value: str | None = None,
  ) -> Activity:
    a = Activity(
      entity_type=entity_type,
      entity_id=entity_id,
      action=action,
      field_name=field_name,
      old_value=old_value,
      new_value=new_value,
      user_id=user_id,
    )
    self.db.add(a)
    await self.db.flush()
    return a

  async def get(self, activity_id: int) -> ActivityRow | None:
    res = await self.db.execute(_with_user().where(Activity.id == activity_id))
    row = res.one_or_none()
    return ActivityRow(*row) if row else None

  async def list_for_entity(self, entity_type: str, entity_id: int) -> list[ActivityRow]:
    res = await self.db.execute(
      _with_user()
      .where(Activity.entity_type == entity_type, Activity.entity_id == entity_id)
      .order_by(Activity.created_at.desc(), Activity.id.desc())
    )
    return [ActivityRow(*row) for row in res.all()]

  async def list_recent(self, *, limit: int = 50, offset: int = 0) -> list[ActivityRow]:
    limit = 50 if limit <= 0 else min(100, limit)
    res = await self.db.execute(
      _with_user().order_by(Activity.created_at.desc(), Activity.id.desc()).offset(max(0, offset)).limit(limit)
    )
    return [ActivityRow(*row) for row in res.all()]

  async def delete_older_than(self, days: int) -> int:
    cutoff = utcnow() - timedelta(days=days)
    res = await self.db.execute(delete(Activity).where(Activity.created_at < cutoff))
    return int(res.rowcount or 0)
