from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

# Must be set before kanban.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./db/kanban_test.db")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

from kanban.db import build_engine, build_sessionmaker, init_models
from kanban.deps import get_db
from kanban.main import app
from kanban.models import BoardColumn, Task, User
from kanban.ordering import OrderingEngine
from kanban.permissions import Actor
from kanban.rate_limit import limiter
from kanban.security import create_access_token, hash_password
from kanban.services import TaskService
from kanban.stores.columns import ColumnStore
from kanban.stores.users import UserStore

DEFAULT_PASSWORD = "pass1234"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
async def engine(tmp_path: Path):
  eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'kanban_test.db'}")
  await init_models(eng)
  yield eng
  await eng.dispose()


@pytest.fixture
async def db(engine) -> AsyncSession:
  async with build_sessionmaker(engine)() as session:
    yield session


@pytest.fixture
async def client(engine) -> AsyncClient:
  maker = build_sessionmaker(engine)

  async def _get_db():
    async with maker() as session:
      yield session

  app.dependency_overrides[get_db] = _get_db
  limiter.reset_prefix("auth:")
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c
  app.dependency_overrides.clear()


@pytest.fixture
async def root(db: AsyncSession) -> User:
  return await make_user(db, "root", is_root=True)


@pytest.fixture
async def alice(db: AsyncSession) -> User:
  return await make_user(db, "alice", name="Alice Smith")


@pytest.fixture
async def bob(db: AsyncSession) -> User:
  return await make_user(db, "bob", name="Bob Jones")


async def make_user(
  db: AsyncSession,
  username: str,
  *,
  is_root: bool = False,
  name: str | None = None,
  password: str = DEFAULT_PASSWORD,
) -> User:
  u = await UserStore(db).create(username=username, password_hash=hash_password(password), name=name, is_root=is_root)
  await db.commit()
  # Detached so a later rollback in this session cannot expire it.
  db.expunge(u)
  return u


async def make_column(db: AsyncSession, title: str, *, created_by: int | None = None) -> BoardColumn:
  position = await OrderingEngine(db).next_column_position()
  c = await ColumnStore(db).create(title=title, created_by=created_by, colors=None, position=position)
  await db.commit()
  db.expunge(c)
  return c


async def make_task(db: AsyncSession, column: BoardColumn, creator: User, title: str, **kwargs) -> Task:
  t = await TaskService(db).create_task(Actor.from_user(creator), title=title, column_id=column.id, **kwargs)
  await db.commit()
  db.expunge(t)
  return t


def auth_headers(user: User) -> dict[str, str]:
  token, _ = create_access_token(user)
  return {"Authorization": f"Bearer {token}"}


async def login(client: AsyncClient, username: str, password: str = DEFAULT_PASSWORD) -> dict:
  res = await client.post("/auth/login", json={"username": username, "password": password})
  assert res.status_code == 200, res.text
  return res.json()
