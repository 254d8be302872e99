"""Read-only notification lookups."""

from __future__ import annotations

from app.notifications.errors import NotFoundError
from app.notifications.models import NotificationSnapshot
from app.notifications.store import NotificationStore


class NotificationQueryService:
  def __init__(self, *, store: NotificationStore) -> None:
    self._store = store

  async def get_details(self, notification_id: int) -> NotificationSnapshot:
    snapshot = await self._store.get_snapshot(notification_id)
    if snapshot is None:
      raise NotFoundError("Notification", notification_id)
    return snapshot
