from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.deps import get_current_user, get_db, require_root
from kanban.models import User
from kanban.schemas import AdminSetPasswordIn, UserBriefOut, UserCreateIn, UserListOut, UserOut, UserUpdateIn
from kanban.security import hash_password
from kanban.serializers import user_out
from kanban.stores.refresh_tokens import RefreshTokenStore
from kanban.stores.users import UserFilters, UserStore

router = APIRouter(tags=["users"])


async def _get_user(db: AsyncSession, user_id: int) -> User:
  u = await UserStore(db).get(user_id, include_inactive=True)
  if not u:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
  return u


@router.get("/users/search", response_model=list[UserBriefOut])
async def search_users(
  q: str = Query(default="", max_length=100),
  limit: int = Query(default=10, ge=1, le=50),
  _user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[UserBriefOut]:
  users = await UserStore(db).search(q, limit=limit)
  return [UserBriefOut(id=u.id, username=u.username, name=u.name) for u in users]


@router.get("/admin/users", response_model=UserListOut)
async def list_users(
  search: str | None = Query(default=None, max_length=100),
  is_active: bool | None = Query(default=None),
  is_root: bool | None = Query(default=None),
  page: int = Query(default=1, ge=1),
  limit: int = Query(default=20, ge=1, le=100),
  _root: User = Depends(require_root),
  db: AsyncSession = Depends(get_db),
) -> UserListOut:
  f = UserFilters(search=search, is_active=is_active, is_root=is_root, page=page, limit=limit)
  users, total = await UserStore(db).list_users(f)
  return UserListOut(users=[user_out(u) for u in users], total=total, page=page, limit=limit)


@router.post("/admin/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreateIn, _root: User = Depends(require_root), db: AsyncSession = Depends(get_db)) -> UserOut:
  store = UserStore(db)
  if await store.username_exists(payload.username):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
  u = await store.create(
    username=payload.username,
    password_hash=hash_password(payload.password),
    name=payload.name,
    designation=payload.designation,
    is_root=payload.isRoot,
  )
  await db.commit()
  return user_out(u)


@router.get("/admin/users/{user_id}", response_model=UserOut)
async def get_user(user_id: int, _root: User = Depends(require_root), db: AsyncSession = Depends(get_db)) -> UserOut:
  return user_out(await _get_user(db, user_id))


@router.put("/admin/users/{user_id}", response_model=UserOut)
async def update_user(
  user_id: int,
  payload: UserUpdateIn,
  _root: User = Depends(require_root),
  db: AsyncSession = Depends(get_db),
) -> UserOut:
  store = UserStore(db)
  u = await _get_user(db, user_id)
  if payload.username is not None and await store.username_exists(payload.username, exclude_id=user_id):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
  await store.update_profile(u, username=payload.username, name=payload.name, designation=payload.designation)
  await db.commit()
  return user_out(u)


@router.post("/admin/users/{user_id}/archive", response_model=UserOut)
async def archive_user(user_id: int, root: User = Depends(require_root), db: AsyncSession = Depends(get_db)) -> UserOut:
  if user_id == root.id:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot archive yourself")
  u = await _get_user(db, user_id)
  await UserStore(db).set_active(u, False)
  await RefreshTokenStore(db).revoke_all_for_user(u.id)
  await db.commit()
  return user_out(u)


@router.post("/admin/users/{user_id}/unarchive", response_model=UserOut)
async def unarchive_user(user_id: int, _root: User = Depends(require_root), db: AsyncSession = Depends(get_db)) -> UserOut:
  u = await UserStore(db).get_archived(user_id)
  if not u:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Archived user not found")
  await UserStore(db).set_active(u, True)
  await db.commit()
  return user_out(u)


@router.put("/admin/users/{user_id}/password")
async def set_user_password(
  user_id: int,
  payload: AdminSetPasswordIn,
  _root: User = Depends(require_root),
  db: AsyncSession = Depends(get_db),
) -> dict:
  u = await _get_user(db, user_id)
  await UserStore(db).update_password(u, hash_password(payload.newPassword))
  await RefreshTokenStore(db).revoke_all_for_user(u.id)
  await db.commit()
  return {"ok": True}
