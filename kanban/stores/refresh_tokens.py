from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.models import RefreshToken, utcnow


class RefreshTokenStore:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def create(self, *, user_id: int, token: str, expires_at: datetime) -> RefreshToken:
    rt = RefreshToken(user_id=user_id, token=token, expires_at=expires_at, is_revoked=False)
    self.db.add(rt)
    await self.db.flush()
    return rt

  async def is_valid(self, token: str) -> bool:
    res = await self.db.execute(
      select(func.count())
      .select_from(RefreshToken)
      .where(RefreshToken.token == token, RefreshToken.is_revoked.is_(False), RefreshToken.expires_at > utcnow())
    )
    return (res.scalar_one() or 0) > 0

  async def revoke(self, token: str) -> None:
    await self.db.execute(update(RefreshToken).where(RefreshToken.token == token).values(is_revoked=True))

  async def revoke_all_for_user(self, user_id: int) -> None:
    await self.db.execute(
      update(RefreshToken).where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False)).values(is_revoked=True)
    )

  async def list_for_user(self, user_id: int) -> list[RefreshToken]:
    res = await self.db.execute(
      select(RefreshToken)
      .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False), RefreshToken.expires_at > utcnow())
      .order_by(RefreshToken.created_at.desc())
    )
    return list(res.scalars().all())

  async def count_for_user(self, user_id: int) -> int:
    res = await self.db.execute(
      select(func.count())
      .select_from(RefreshToken)
      .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False), RefreshToken.expires_at > utcnow())
    )
    return int(res.scalar_one() or 0)

  async def cleanup_expired(self) -> int:
    res = await self.db.execute(
      delete(RefreshToken).where(or_(RefreshToken.expires_at <= utcnow(), RefreshToken.is_revoked.is_(True)))
    )
    return int(res.rowcount or 0)
