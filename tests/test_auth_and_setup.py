from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth_headers, login, make_user
from kanban.config import settings
from kanban.models import User
from kanban.rate_limit import RateLimiter


@pytest.mark.anyio
async def test_setup_creates_root_once(client: AsyncClient) -> None:
  status = await client.get("/setup/status")
  assert status.json() == {"setupComplete": False}

  res = await client.post("/setup", json={"username": "admin", "password": "admin1234", "name": "Admin"})
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["user"]["isRoot"] is True
  assert body["accessToken"] and body["refreshToken"]

  assert (await client.get("/setup/status")).json() == {"setupComplete": True}
  again = await client.post("/setup", json={"username": "admin2", "password": "admin1234"})
  assert again.status_code == 409

  name = await client.get("/setup/app-name")
  assert name.json()["appName"] == "Offline Kanban"


@pytest.mark.anyio
async def test_setup_validates_input(client: AsyncClient) -> None:
  res = await client.post("/setup", json={"username": "ab", "password": "admin1234"})
  assert res.status_code == 422
  res = await client.post("/setup", json={"username": "admin", "password": "123"})
  assert res.status_code == 422


@pytest.mark.anyio
async def test_login_refresh_rotation_and_logout(client: AsyncClient, alice: User) -> None:
  tokens = await login(client, "alice")
  assert tokens["user"]["username"] == "alice"

  me = await client.get("/auth/verify", headers={"Authorization": f"Bearer {tokens['accessToken']}"})
  assert me.status_code == 200, me.text
  assert me.json()["user"]["id"] == alice.id

  rotated = await client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
  assert rotated.status_code == 200, rotated.text
  new_refresh = rotated.json()["refreshToken"]
  assert new_refresh != tokens["refreshToken"]

  reused = await client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
  assert reused.status_code == 401

  out = await client.post("/auth/logout", json={"refreshToken": new_refresh})
  assert out.status_code == 200
  after = await client.post("/auth/refresh", json={"refreshToken": new_refresh})
  assert after.status_code == 401


@pytest.mark.anyio
async def test_access_token_cannot_be_used_as_refresh_token(client: AsyncClient, alice: User) -> None:
  tokens = await login(client, "alice")
  res = await client.post("/auth/refresh", json={"refreshToken": tokens["accessToken"]})
  assert res.status_code == 401


@pytest.mark.anyio
async def test_bad_credentials_and_missing_token(client: AsyncClient, alice: User) -> None:
  res = await client.post("/auth/login", json={"username": "alice", "password": "wrong-pass"})
  assert res.status_code == 401
  assert (await client.get("/tasks")).status_code == 401
  bad = await client.get("/tasks", headers={"Authorization": "Bearer not-a-jwt"})
  assert bad.status_code == 401


@pytest.mark.anyio
async def test_archived_user_cannot_log_in_or_use_tokens(client: AsyncClient, db: AsyncSession, root: User) -> None:
  carol = await make_user(db, "carol")
  headers = auth_headers(carol)
  res = await client.post(f"/admin/users/{carol.id}/archive", headers=auth_headers(root))
  assert res.status_code == 200, res.text
  assert res.json()["isActive"] is False

  assert (await client.post("/auth/login", json={"username": "carol", "password": "pass1234"})).status_code == 401
  assert (await client.get("/user/profile", headers=headers)).status_code == 403

  back = await client.post(f"/admin/users/{carol.id}/unarchive", headers=auth_headers(root))
  assert back.status_code == 200
  await login(client, "carol")


@pytest.mark.anyio
async def test_profile_update_and_password_change(client: AsyncClient, alice: User) -> None:
  headers = auth_headers(alice)
  res = await client.put("/user/profile", json={"designation": "Engineer"}, headers=headers)
  assert res.status_code == 200, res.text
  assert (res.json()["designation"], res.json()["name"]) == ("Engineer", "Alice Smith")

  wrong = await client.post("/user/change-password", json={"currentPassword": "nope", "newPassword": "newpass1"}, headers=headers)
  assert wrong.status_code == 400
  ok = await client.post("/user/change-password", json={"currentPassword": "pass1234", "newPassword": "newpass1"}, headers=headers)
  assert ok.status_code == 200
  await login(client, "alice", "newpass1")


@pytest.mark.anyio
async def test_admin_user_management_requires_root(client: AsyncClient, root: User, alice: User) -> None:
  denied = await client.get("/admin/users", headers=auth_headers(alice))
  assert denied.status_code == 403

  created = await client.post(
    "/admin/users",
    json={"username": "dave", "password": "dave1234", "name": "Dave", "designation": "QA"},
    headers=auth_headers(root),
  )
  assert created.status_code == 201, created.text
  dup = await client.post("/admin/users", json={"username": "DAVE", "password": "dave1234"}, headers=auth_headers(root))
  assert dup.status_code == 409

  listed = await client.get("/admin/users", params={"search": "da", "limit": 10}, headers=auth_headers(root))
  assert listed.status_code == 200
  assert [u["username"] for u in listed.json()["users"]] == ["dave"]

  found = await client.get("/users/search", params={"q": "ali"}, headers=auth_headers(alice))
  assert [u["username"] for u in found.json()] == ["alice"]


@pytest.mark.anyio
async def test_login_rate_limited_per_username(client: AsyncClient, alice: User, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setattr(settings, "rate_limit_login_username_per_minute", 2)
  for _ in range(2):
    res = await client.post("/auth/login", json={"username": "alice", "password": "wrong-pass"})
    assert res.status_code == 401
  limited = await client.post("/auth/login", json={"username": "alice", "password": "pass1234"})
  assert limited.status_code == 429
  assert limited.headers.get("retry-after")
  assert limited.json()["detail"]["code"] == "rate_limited"


def test_rate_limiter_window_reopens_after_expiry() -> None:
  now = [100.0]
  rl = RateLimiter(clock=lambda: now[0], max_keys=2)

  assert rl.hit("auth:login:ip:a", limit=2, window_seconds=60) == (True, 0)
  assert rl.hit("auth:login:ip:a", limit=2, window_seconds=60) == (True, 0)
  assert rl.hit("auth:login:ip:a", limit=2, window_seconds=60) == (False, 60)

  now[0] = 130.0
  assert rl.hit("auth:login:ip:a", limit=2, window_seconds=60) == (False, 30)

  now[0] = 161.0
  assert rl.hit("auth:login:ip:a", limit=2, window_seconds=60) == (True, 0)

  rl.hit("auth:login:ip:b", limit=2, window_seconds=1)
  now[0] = 170.0
  rl.hit("auth:login:ip:c", limit=2, window_seconds=60)
  assert set(rl._windows) == {"auth:login:ip:a", "auth:login:ip:c"}

  rl.reset_prefix("auth:login:ip:")
  assert rl._windows == {}
