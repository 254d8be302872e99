"""Read-only device directory scoped by the owning user's country."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.notifications.errors import PersistenceError
from app.notifications.models import Device, DeviceQuery
from app.schema.sql import Device as DeviceRow
from app.schema.sql import User


class DeviceDirectory(Protocol):
  """Lookup contract for candidate devices."""

  async def find_devices(self, query: DeviceQuery) -> list[Device]:
    """Return devices matching the query, in a stable order."""


class PostgresDeviceDirectory(DeviceDirectory):
  """Resolve devices by joining each device to its owner's current country."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def find_devices(self, query: DeviceQuery) -> list[Device]:
    if not query.country_ids:
      return []

    # Country comes from the user row at query time so moves between cycles are honored.
    stmt = select(DeviceRow.token, DeviceRow.user_id, User.country_id).join(User, User.id == DeviceRow.user_id).where(User.country_id.in_(sorted(query.country_ids))).order_by(DeviceRow.id)
    if not query.include_expired:
      stmt = stmt.where(DeviceRow.expired.is_(False))

    try:
      async with self._session_factory() as session:
        result = await session.execute(stmt)
        rows = result.all()
    except SQLAlchemyError as exc:
      raise PersistenceError("Failed to load devices") from exc

    return [Device(token=row.token, user_id=row.user_id, country_id=row.country_id) for row in rows]
