from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from kanban.config import settings
from kanban.deps import client_ip, get_current_user, get_db
from kanban.models import User
from kanban.rate_limit import limiter
from kanban.schemas import LoginIn, RefreshIn, TokenOut
from kanban.security import REFRESH, TokenError, create_access_token, create_refresh_token, decode_token, verify_password
from kanban.serializers import user_out
from kanban.stores.refresh_tokens import RefreshTokenStore
from kanban.stores.users import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _rate_limit_or_429(*, key: str, limit: int, window_seconds: int) -> None:
  allowed, retry_after = limiter.hit(key, limit=limit, window_seconds=window_seconds)
  if allowed:
    return
  raise HTTPException(
    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    detail={"code": "rate_limited", "message": "Too many requests", "retryAfterSeconds": retry_after},
    headers={"Retry-After": str(retry_after)},
  )


async def issue_tokens(db: AsyncSession, u: User) -> TokenOut:
  access, expires_at = create_access_token(u)
  refresh, refresh_expires_at = create_refresh_token(u)
  await RefreshTokenStore(db).create(user_id=u.id, token=refresh, expires_at=refresh_expires_at)
  return TokenOut(accessToken=access, refreshToken=refresh, expiresAt=expires_at, user=user_out(u))


@router.post("/login", response_model=TokenOut)
async def login(payload: LoginIn, request: Request, db: AsyncSession = Depends(get_db)) -> TokenOut:
  ip = client_ip(request) or "unknown"
  username_key = payload.username.strip().lower()
  _rate_limit_or_429(key=f"auth:login:ip:{ip}", limit=int(settings.rate_limit_login_ip_per_minute), window_seconds=60)
  _rate_limit_or_429(
    key=f"auth:login:username:{username_key}",
    limit=int(settings.rate_limit_login_username_per_minute),
    window_seconds=60,
  )

  u = await UserStore(db).get_by_username(payload.username)
  if not u or not verify_password(payload.password, u.password_hash):
    logger.info("Failed login for %r from %s", username_key, ip)
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

  out = await issue_tokens(db, u)
  await db.commit()
  return out


@router.post("/refresh", response_model=TokenOut)
async def refresh(payload: RefreshIn, db: AsyncSession = Depends(get_db)) -> TokenOut:
  try:
    claims = decode_token(payload.refreshToken, expected_type=REFRESH)
  except TokenError:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

  tokens = RefreshTokenStore(db)
  if not await tokens.is_valid(payload.refreshToken):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token revoked or expired")
  u = await UserStore(db).get(int(claims["sub"]))
  if not u:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

  await tokens.revoke(payload.refreshToken)
  out = await issue_tokens(db, u)
  await db.commit()
  return out


@router.post("/logout")
async def logout(payload: RefreshIn, db: AsyncSession = Depends(get_db)) -> dict:
  await RefreshTokenStore(db).revoke(payload.refreshToken)
  await db.commit()
  return {"ok": True}


@router.get("/verify")
async def verify(user: User = Depends(get_current_user)) -> dict:
  return {"valid": True, "user": user_out(user).model_dump(mode="json")}
