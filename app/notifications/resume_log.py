"""Durable record of which users each unfinished notification has already claimed.

The dispatcher reads the whole mapping once per cycle and writes it back after
every notification's batch is selected and before any of that batch is sent.
Two backends exist:

- ``JsonFileResumeLog`` keeps the mapping in one JSON document and replaces the
  file atomically, so readers see either the old or the new state.
- ``PostgresResumeLog`` keeps one row per claim. Besides full ``save`` it offers
  ``save_checkpoint``, which commits a notification's claims together with its
  progress columns so a crash mid-batch cannot leave claims without progress.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping, Set
from pathlib import Path
from typing import Protocol, runtime_checkable

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from app.notifications.errors import PersistenceError
from app.notifications.models import ProgressCheckpoint
from app.schema.claims import NotificationClaim
from app.schema.notifications import PushNotification

logger = logging.getLogger(__name__)

ClaimMap = dict[int, set[int]]


class ResumeLog(Protocol):
  """Key-value contract: notification id -> user ids already claimed."""

  async def load(self) -> ClaimMap:
    """Return the persisted mapping; missing state loads as empty."""

  async def save(self, claims: Mapping[int, Set[int]]) -> None:
    """Atomically replace the persisted mapping."""


@runtime_checkable
class TransactionalResumeLog(ResumeLog, Protocol):
  """Resume log that can persist claims and progress columns in one transaction."""

  async def save_checkpoint(self, claims: Mapping[int, Set[int]], checkpoint: ProgressCheckpoint) -> None:
    """Persist the claim entry of ``checkpoint.notification_id`` with its progress columns."""


def _normalize(claims: Mapping[int, Set[int]]) -> ClaimMap:
  return {int(notification_id): {int(user_id) for user_id in user_ids} for notification_id, user_ids in claims.items()}


class JsonFileResumeLog(ResumeLog):
  """Store the claim mapping in a JSON file replaced atomically on every save."""

  def __init__(self, path: str | Path) -> None:
    self._path = Path(path)

  @property
  def path(self) -> Path:
    return self._path

  async def load(self) -> ClaimMap:
    return await run_in_threadpool(self._read)

  async def save(self, claims: Mapping[int, Set[int]]) -> None:
    await run_in_threadpool(self._write, _normalize(claims))

  def _read(self) -> ClaimMap:
    if not self._path.exists():
      return {}

    try:
      raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
    except (OSError, ValueError) as exc:
      # Refuse to guess: an unreadable log would otherwise re-notify every claimed user.
      raise PersistenceError(f"Failed to read resume log at {self._path}") from exc

    if not isinstance(raw, dict):
      raise PersistenceError(f"Resume log at {self._path} is not a JSON object")

    try:
      claims: ClaimMap = {}
      for notification_id, user_ids in raw.items():
        if not isinstance(user_ids, list):
          raise TypeError(f"entry {notification_id!r} is not a list of user ids")
        claims[int(notification_id)] = {int(user_id) for user_id in user_ids}
    except (TypeError, ValueError) as exc:
      raise PersistenceError(f"Resume log at {self._path} has an invalid entry") from exc
    return claims

  def _write(self, claims: ClaimMap) -> None:
    payload = {str(notification_id): sorted(user_ids) for notification_id, user_ids in sorted(claims.items())}
    directory = self._path.parent
    tmp_name: str | None = None
    try:
      directory.mkdir(parents=True, exist_ok=True)
      with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=directory, prefix=f".{self._path.name}.", suffix=".tmp", delete=False) as handle:
        tmp_name = handle.name
        json.dump(payload, handle, separators=(",", ":"))
        handle.flush()
        os.fsync(handle.fileno())
      os.replace(tmp_name, self._path)
      tmp_name = None
    except OSError as exc:
      raise PersistenceError(f"Failed to write resume log at {self._path}") from exc
    finally:
      if tmp_name is not None:
        Path(tmp_name).unlink(missing_ok=True)


class PostgresResumeLog(TransactionalResumeLog):
  """Store claims as rows next to the notifications they belong to."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def load(self) -> ClaimMap:
    stmt = select(NotificationClaim.notification_id, NotificationClaim.user_id)
    try:
      async with self._session_factory() as session:
        result = await session.execute(stmt)
        rows = result.all()
    except SQLAlchemyError as exc:
      raise PersistenceError("Failed to load notification claims") from exc

    claims: ClaimMap = {}
    for row in rows:
      claims.setdefault(row.notification_id, set()).add(row.user_id)
    return claims

  async def save(self, claims: Mapping[int, Set[int]]) -> None:
    rows = [{"notification_id": notification_id, "user_id": user_id} for notification_id, user_ids in _normalize(claims).items() for user_id in sorted(user_ids)]
    try:
      async with self._session_factory() as session, session.begin():
        await session.execute(delete(NotificationClaim))
        if rows:
          await session.execute(insert(NotificationClaim), rows)
    except SQLAlchemyError as exc:
      raise PersistenceError("Failed to save notification claims") from exc

  async def save_checkpoint(self, claims: Mapping[int, Set[int]], checkpoint: ProgressCheckpoint) -> None:
    notification_id = checkpoint.notification_id
    user_ids = sorted(int(user_id) for user_id in claims.get(notification_id, ()))
    try:
      async with self._session_factory() as session, session.begin():
        # Replace only this notification's entry; the rest of the mapping is untouched by this step.
        await session.execute(delete(NotificationClaim).where(NotificationClaim.notification_id == notification_id))
        if user_ids:
          await session.execute(insert(NotificationClaim), [{"notification_id": notification_id, "user_id": user_id} for user_id in user_ids])
        await session.execute(
          update(PushNotification).where(PushNotification.id == notification_id).values(in_progress=checkpoint.in_progress, in_queue=checkpoint.in_queue, status=int(checkpoint.status))
        )
    except SQLAlchemyError as exc:
      raise PersistenceError(f"Failed to checkpoint notification {notification_id}") from exc
