from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.deps import get_current_user, get_db
from kanban.models import User
from kanban.schemas import ChangePasswordIn, ProfileUpdateIn, UserOut
from kanban.security import hash_password, verify_password
from kanban.serializers import user_out
from kanban.stores.refresh_tokens import RefreshTokenStore
from kanban.stores.users import UserStore

router = APIRouter(prefix="/user", tags=["profile"])


@router.get("/profile", response_model=UserOut)
async def get_profile(user: User = Depends(get_current_user)) -> UserOut:
  return user_out(user)


@router.put("/profile", response_model=UserOut)
async def update_profile(
  payload: ProfileUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> UserOut:
  await UserStore(db).update_profile(user, name=payload.name, designation=payload.designation)
  await db.commit()
  return user_out(user)


@router.post("/change-password")
async def change_password(
  payload: ChangePasswordIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> dict:
  if not verify_password(payload.currentPassword, user.password_hash):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
  await UserStore(db).update_password(user, hash_password(payload.newPassword))
  await RefreshTokenStore(db).revoke_all_for_user(user.id)
  await db.commit()
  return {"ok": True}
