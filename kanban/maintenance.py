from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from kanban.activity import ActivityLedger
from kanban.stores.refresh_tokens import RefreshTokenStore

logger = logging.getLogger(__name__)


async def run_maintenance_once(db: AsyncSession, *, retention_days: int) -> dict[str, int]:
  """
  Activity retention sweep plus refresh token cleanup.

  Notes:
  - Not part of any request path; safe to run while the API serves traffic.
  - Revoked and expired refresh tokens are deleted outright.
  """
  purged = await ActivityLedger(db).purge_older_than(retention_days)
  tokens = await RefreshTokenStore(db).cleanup_expired()
  await db.commit()
  if tokens:
    logger.info("Removed %s expired or revoked refresh tokens", tokens)
  return {"activities": purged, "refreshTokens": tokens}
