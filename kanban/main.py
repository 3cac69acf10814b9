from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kanban.config import settings
from kanban.db import SessionLocal, init_models
from kanban.errors import KanbanError, StorageFailure
from kanban.maintenance import run_maintenance_once
from kanban.routers.activities import router as activities_router
from kanban.routers.auth import router as auth_router
from kanban.routers.checklists import router as checklists_router
from kanban.routers.columns import router as columns_router
from kanban.routers.comments import router as comments_router
from kanban.routers.profile import router as profile_router
from kanban.routers.settings import router as settings_router
from kanban.routers.setup import router as setup_router
from kanban.routers.tasks import router as tasks_router
from kanban.routers.users import router as users_router

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
  title="Offline Kanban API",
  version=settings.app_version,
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)


@app.exception_handler(StorageFailure)
async def _storage_failure_handler(_, exc: StorageFailure) -> JSONResponse:
  return JSONResponse(status_code=500, content={"detail": "Storage failure"})


@app.exception_handler(KanbanError)
async def _kanban_error_handler(_, exc: KanbanError) -> JSONResponse:
  return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)

for r in (
  setup_router,
  auth_router,
  profile_router,
  users_router,
  columns_router,
  tasks_router,
  comments_router,
  checklists_router,
  activities_router,
  settings_router,
):
  app.include_router(r)


SECURITY_HEADERS = {
  "X-Content-Type-Options": "nosniff",
  "X-Frame-Options": "DENY",
  "Referrer-Policy": "strict-origin-when-cross-origin",
}


@app.middleware("http")
async def _security_headers_middleware(request, call_next):
  response = await call_next(request)
  for name, value in SECURITY_HEADERS.items():
    response.headers.setdefault(name, value)
  return response


@app.get("/health")
async def health() -> dict:
  return {"ok": True}


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version, "buildSha": settings.build_sha}


_retention_loop_task: asyncio.Task | None = None


def _is_test_db() -> bool:
  return "test" in settings.database_url.rsplit("/", 1)[-1]


async def _retention_loop() -> None:
  while True:
    try:
      async with SessionLocal() as db:
        await run_maintenance_once(db, retention_days=settings.activity_retention_days)
    except Exception:
      logger.exception("Maintenance sweep failed")
    await asyncio.sleep(max(60, int(settings.activity_retention_interval_seconds)))


@app.on_event("startup")
async def _startup() -> None:
  global _retention_loop_task
  await init_models()
  if _is_test_db():
    return
  if not settings.jwt_secret or settings.jwt_secret.strip().lower() in {"dev-secret-change-me", "change-me"}:
    logger.warning("JWT_SECRET is a placeholder; set a strong secret before exposing the API")
  if settings.activity_retention_enabled and _retention_loop_task is None:
    _retention_loop_task = asyncio.create_task(_retention_loop())
