from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import DDL, event, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from kanban.config import settings
from kanban.errors import StorageFailure
from kanban.models import AppSettings, Base

logger = logging.getLogger(__name__)

_TRIGGER_SQL = """
CREATE TRIGGER IF NOT EXISTS trg_{table}_updated_at
AFTER UPDATE ON {table}
FOR EACH ROW
BEGIN
  UPDATE {table} SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
END
"""


def _install_updated_at_triggers() -> None:
  for table in Base.metadata.sorted_tables:
    if "updated_at" not in table.c:
      continue
    event.listen(table, "after_create", DDL(_TRIGGER_SQL.format(table=table.name)).execute_if(dialect="sqlite"))


_install_updated_at_triggers()


def _configure_sqlite_connection(dbapi_conn, _record) -> None:
  # The driver must not issue its own deferred BEGIN; _begin_immediate does.
  dbapi_conn.isolation_level = None
  cur = dbapi_conn.cursor()
  cur.execute("PRAGMA foreign_keys=ON")
  cur.close()


def _begin_immediate(conn) -> None:
  # Take the write lock on the first statement so check-then-write sequences are serialized.
  conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
  u = make_url(url)
  if u.get_backend_name() == "sqlite" and u.database and u.database != ":memory:":
    Path(u.database).parent.mkdir(parents=True, exist_ok=True)
  eng = create_async_engine(url, echo=echo)
  if u.get_backend_name() == "sqlite":
    event.listen(eng.sync_engine, "connect", _configure_sqlite_connection)
    event.listen(eng.sync_engine, "begin", _begin_immediate)
  return eng


def build_sessionmaker(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
  return async_sessionmaker(bind=eng, expire_on_commit=False, class_=AsyncSession)


engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = build_sessionmaker(engine)


async def init_models(eng: AsyncEngine | None = None) -> None:
  """
  Create tables (with their updated_at triggers) and the default settings row.

  Idempotent; Alembic's 0001_init produces the same schema for managed deployments.
  """
  eng = eng or engine
  async with eng.begin() as conn:
    await conn.run_sync(Base.metadata.create_all)
  async with build_sessionmaker(eng)() as db:
    res = await db.execute(select(AppSettings).where(AppSettings.id == 1))
    if res.scalar_one_or_none() is None:
      db.add(AppSettings(id=1))
      await db.commit()


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
  """Commit on success; roll back on any error, surfacing storage errors as StorageFailure."""
  try:
    yield db
    await db.commit()
  except SQLAlchemyError as exc:
    await db.rollback()
    logger.error("Transaction rolled back: %s", exc)
    raise StorageFailure("Storage operation failed") from exc
  except BaseException:
    await db.rollback()
    raise
