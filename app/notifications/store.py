"""Storage contract and Postgres repository for notification records."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.notifications.errors import PersistenceError
from app.notifications.models import Notification, NotificationDraft, NotificationSnapshot, NotificationStatus, NotificationUpdate
from app.schema.notifications import PushNotification
from app.schema.sql import Country

logger = logging.getLogger(__name__)


class NotificationStore(Protocol):
  """Repository contract for notification persistence."""

  async def create(self, draft: NotificationDraft) -> int:
    """Insert a queued notification with zeroed counters and return its id."""

  async def get_snapshot(self, notification_id: int) -> NotificationSnapshot | None:
    """Fetch the public counters of a notification."""

  async def list_unfinished(self) -> list[Notification]:
    """Return every notification that is not finished, ordered by ascending id."""

  async def update(self, notification_id: int, changes: NotificationUpdate) -> None:
    """Write the counters and status computed by a cycle."""

  async def country_exists(self, country_id: int) -> bool:
    """Return whether a country row exists."""


class PostgresNotificationStore(NotificationStore):
  """Persist notifications to Postgres using SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def create(self, draft: NotificationDraft) -> int:
    try:
      async with self._session_factory() as session:
        row = PushNotification(country_id=draft.country_id, title=draft.title, message=draft.message, status=int(NotificationStatus.IN_QUEUE), sent=0, failed=0, in_progress=0, in_queue=0)
        session.add(row)
        await session.commit()
        return row.id
    except SQLAlchemyError as exc:
      raise PersistenceError("Failed to create notification") from exc

  async def get_snapshot(self, notification_id: int) -> NotificationSnapshot | None:
    stmt = select(PushNotification.id, PushNotification.title, PushNotification.message, PushNotification.sent, PushNotification.failed, PushNotification.in_progress, PushNotification.in_queue).where(
      PushNotification.id == notification_id
    )
    try:
      async with self._session_factory() as session:
        result = await session.execute(stmt)
        row = result.first()
    except SQLAlchemyError as exc:
      raise PersistenceError(f"Failed to read notification {notification_id}") from exc

    if row is None:
      return None
    return NotificationSnapshot(id=row.id, title=row.title, message=row.message, sent=row.sent, failed=row.failed, in_progress=row.in_progress, in_queue=row.in_queue)

  async def list_unfinished(self) -> list[Notification]:
    stmt = select(PushNotification).where(PushNotification.status != int(NotificationStatus.FINISHED)).order_by(PushNotification.id)
    try:
      async with self._session_factory() as session:
        result = await session.execute(stmt)
        rows = result.scalars().all()
    except SQLAlchemyError as exc:
      raise PersistenceError("Failed to list unfinished notifications") from exc

    return [_row_to_notification(row) for row in rows]

  async def update(self, notification_id: int, changes: NotificationUpdate) -> None:
    stmt = (
      update(PushNotification)
      .where(PushNotification.id == notification_id)
      .values(sent=changes.sent, failed=changes.failed, in_progress=changes.in_progress, in_queue=changes.in_queue, status=int(changes.status))
    )
    try:
      async with self._session_factory() as session:
        await session.execute(stmt)
        await session.commit()
    except SQLAlchemyError as exc:
      raise PersistenceError(f"Failed to update notification {notification_id}") from exc

  async def country_exists(self, country_id: int) -> bool:
    stmt = select(Country.id).where(Country.id == country_id).limit(1)
    try:
      async with self._session_factory() as session:
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
    except SQLAlchemyError as exc:
      raise PersistenceError(f"Failed to check country {country_id}") from exc


def _row_to_notification(row: PushNotification) -> Notification:
  return Notification(
    id=row.id,
    country_id=row.country_id,
    title=row.title,
    message=row.message,
    status=NotificationStatus(row.status),
    sent=row.sent,
    failed=row.failed,
    in_progress=row.in_progress,
    in_queue=row.in_queue,
  )
