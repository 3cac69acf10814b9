from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.models import User, utcnow


@dataclass
class UserFilters:
  search: str | None = None
  is_active: bool | None = None
  is_root: bool | None = None
  page: int = 1
  limit: int = 20


def display_name(u: User) -> str:
  return (u.name or "").strip() or u.username


class UserStore:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def get(self, user_id: int, *, include_inactive: bool = False) -> User | None:
    stmt = select(User).where(User.id == user_id)
    if not include_inactive:
      stmt = stmt.where(User.is_active.is_(True))
    res = await self.db.execute(stmt)
    return res.scalar_one_or_none()

  async def get_archived(self, user_id: int) -> User | None:
    res = await self.db.execute(select(User).where(User.id == user_id, User.is_active.is_(False)))
    return res.scalar_one_or_none()

  async def get_by_username(self, username: str, *, include_inactive: bool = False) -> User | None:
    stmt = select(User).where(func.lower(User.username) == username.strip().lower())
    if not include_inactive:
      stmt = stmt.where(User.is_active.is_(True))
    res = await self.db.execute(stmt)
    return res.scalar_one_or_none()

  async def username_exists(self, username: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(func.count()).select_from(User).where(func.lower(User.username) == username.strip().lower())
    if exclude_id is not None:
      stmt = stmt.where(User.id != exclude_id)
    res = await self.db.execute(stmt)
    return (res.scalar_one() or 0) > 0

  async def root_exists(self) -> bool:
    res = await self.db.execute(select(func.count()).select_from(User).where(User.is_root.is_(True)))
    return (res.scalar_one() or 0) > 0

  async def create(
    self,
    *,
    username: str,
    password_hash: str,
    name: str | None = None,
    designation: str | None = None,
    is_root: bool = False,
  ) -> User:
    u = User(
      username=username.strip(),
      password_hash=password_hash,
      name=name,
      designation=designation,
      is_root=is_root,
      is_active=True,
    )
    self.db.add(u)
    await self.db.flush()
    return u

  async def update_profile(self, u: User, *, username: str | None = None, name: str | None = None, designation: str | None = None) -> User:
    if username is not None:
      u.username = username.strip()
    if name is not None:
      u.name = name
    if designation is not None:
      u.designation = designation
    u.updated_at = utcnow()
    await self.db.flush()
    return u

  async def update_password(self, u: User, password_hash: str) -> None:
    u.password_hash = password_hash
    u.updated_at = utcnow()
    await self.db.flush()

  async def set_active(self, u: User, active: bool) -> None:
    u.is_active = active
    u.updated_at = utcnow()
    await self.db.flush()

  async def list_users(self, f: UserFilters) -> tuple[list[User], int]:
    conds = []
    if f.search:
      q = f"%{f.search.strip()}%"
      conds.append(or_(User.username.ilike(q), User.name.ilike(q), User.designation.ilike(q)))
    if f.is_active is not None:
      conds.append(User.is_active.is_(f.is_active))
    if f.is_root is not None:
      conds.append(User.is_root.is_(f.is_root))

    cres = await self.db.execute(select(func.count()).select_from(User).where(*conds))
    total = int(cres.scalar_one() or 0)

    page = max(1, f.page)
    limit = max(1, min(100, f.limit))
    res = await self.db.execute(
      select(User).where(*conds).order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit)
    )
    return list(res.scalars().all()), total

  async def search(self, query: str, *, limit: int = 10) -> list[User]:
    q = f"%{query.strip()}%"
    res = await self.db.execute(
      select(User)
      .where(User.is_active.is_(True), or_(User.username.ilike(q), User.name.ilike(q)))
      .order_by(User.username.asc())
      .limit(max(1, min(50, limit)))
    )
    return list(res.scalars().all())

  async def display_name(self, user_id: int | None) -> str | None:
    if user_id is None:
      return None
    u = await self.get(user_id, include_inactive=True)
    return display_name(u) if u else None
