"""Mutual exclusion around a whole dispatch cycle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.notifications.errors import PersistenceError

logger = logging.getLogger(__name__)

# Stable advisory key shared by every service instance ("PUSH" in ASCII).
DEFAULT_ADVISORY_KEY = 0x50555348


class CycleLock(Protocol):
  def acquire(self) -> AbstractAsyncContextManager[bool]:
    """Try to take the lock without waiting; yields whether it was acquired."""


class NullCycleLock(CycleLock):
  """Always grants the lock; relies on the scheduler never overlapping cycles."""

  @asynccontextmanager
  async def acquire(self) -> AsyncIterator[bool]:
    yield True


class LocalCycleLock(CycleLock):
  """Process-local lock for deployments without a shared database."""

  def __init__(self) -> None:
    self._lock = asyncio.Lock()

  @asynccontextmanager
  async def acquire(self) -> AsyncIterator[bool]:
    if self._lock.locked():
      yield False
      return

    async with self._lock:
      yield True


class PostgresAdvisoryCycleLock(CycleLock):
  """Session-level Postgres advisory lock held on a dedicated connection for the whole cycle."""

  def __init__(self, engine: AsyncEngine, *, key: int = DEFAULT_ADVISORY_KEY) -> None:
    self._engine = engine
    self._key = key

  @asynccontextmanager
  async def acquire(self) -> AsyncIterator[bool]:
    try:
      connection = await self._engine.connect()
    except SQLAlchemyError as exc:
      raise PersistenceError("Failed to open a connection for the cycle lock") from exc

    try:
      try:
        acquired = bool(await connection.scalar(text("SELECT pg_try_advisory_lock(:key)"), {"key": self._key}))
      except SQLAlchemyError as exc:
        raise PersistenceError("Failed to acquire the cycle advisory lock") from exc

      try:
        yield acquired
      finally:
        if acquired:
          try:
            await connection.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": self._key})
          except SQLAlchemyError:
            # Dropping the pooled connection ends the server session, which releases the lock.
            logger.warning("Failed to release cycle advisory lock key=%s; invalidating connection", self._key, exc_info=True)
            await connection.invalidate()
    finally:
      await connection.close()
