from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from kanban.config import settings
from kanban.models import User, utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.password_hash_rounds)

ACCESS = "access"
REFRESH = "refresh"


class TokenError(RuntimeError):
  pass


def hash_password(password: str) -> str:
  return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
  return pwd_context.verify(password, password_hash)


def _encode(claims: dict[str, Any]) -> str:
  return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user: User) -> tuple[str, datetime]:
  now = utcnow()
  expires_at = now + timedelta(minutes=settings.access_token_expire_minutes)
  token = _encode(
    {
      "sub": str(user.id),
      "username": user.username,
      "isRoot": bool(user.is_root),
      "type": ACCESS,
      "iat": now,
      "exp": expires_at,
    }
  )
  return token, expires_at


def create_refresh_token(user: User) -> tuple[str, datetime]:
  now = utcnow()
  expires_at = now + timedelta(days=settings.refresh_token_expire_days)
  # jti keeps tokens issued within the same second distinct.
  token = _encode({"sub": str(user.id), "type": REFRESH, "jti": secrets.token_urlsafe(16), "iat": now, "exp": expires_at})
  return token, expires_at


def decode_token(token: str, *, expected_type: str) -> dict[str, Any]:
  try:
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
  except JWTError as exc:
    raise TokenError("Invalid token") from exc
  if claims.get("type") != expected_type or not str(claims.get("sub") or "").isdigit():
    raise TokenError("Invalid token")
  return claims
