"""Shared fixtures and in-memory collaborators for notification tests."""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable, Mapping, Set
from dataclasses import replace

import pytest

from app.notifications.dispatcher import BatchDispatcher, DispatcherConfig
from app.notifications.errors import PersistenceError
from app.notifications.models import Device, DeviceQuery, Notification, NotificationDraft, NotificationSnapshot, NotificationStatus, NotificationUpdate, ProgressCheckpoint
from app.notifications.resume_log import ClaimMap


@pytest.fixture
def anyio_backend():
  return "asyncio"


class InMemoryNotificationStore:
  def __init__(self, *, countries: Iterable[int] = (), notifications: Iterable[Notification] = ()) -> None:
    self.countries = set(countries)
    self.rows: dict[int, Notification] = {notification.id: notification for notification in notifications}
    self.updates: list[tuple[int, NotificationUpdate]] = []
    self.fail_updates_for: set[int] = set()
    self.created: list[NotificationDraft] = []

  async def create(self, draft: NotificationDraft) -> int:
    notification_id = max(self.rows, default=0) + 1
    self.rows[notification_id] = Notification(id=notification_id, country_id=draft.country_id, title=draft.title, message=draft.message)
    self.created.append(draft)
    return notification_id

  async def get_snapshot(self, notification_id: int) -> NotificationSnapshot | None:
    row = self.rows.get(notification_id)
    if row is None:
      return None
    return NotificationSnapshot(id=row.id, title=row.title, message=row.message, sent=row.sent, failed=row.failed, in_progress=row.in_progress, in_queue=row.in_queue)

  async def list_unfinished(self) -> list[Notification]:
    return [row for _, row in sorted(self.rows.items()) if row.status != NotificationStatus.FINISHED]

  async def update(self, notification_id: int, changes: NotificationUpdate) -> None:
    if notification_id in self.fail_updates_for:
      raise PersistenceError(f"update failed for {notification_id}")
    self.updates.append((notification_id, changes))
    self.rows[notification_id] = replace(self.rows[notification_id], sent=changes.sent, failed=changes.failed, in_progress=changes.in_progress, in_queue=changes.in_queue, status=changes.status)

  async def country_exists(self, country_id: int) -> bool:
    return country_id in self.countries

  def apply_checkpoint(self, checkpoint: ProgressCheckpoint) -> None:
    self.rows[checkpoint.notification_id] = replace(self.rows[checkpoint.notification_id], in_progress=checkpoint.in_progress, in_queue=checkpoint.in_queue, status=checkpoint.status)


class FakeDeviceDirectory:
  """Devices keyed by owner; the owner's country is resolved on every lookup."""

  def __init__(self) -> None:
    self.user_countries: dict[int, int | None] = {}
    self.devices: list[tuple[str, int, bool]] = []
    self.queries: list[DeviceQuery] = []

  def add_user(self, user_id: int, country_id: int | None, *, tokens: Iterable[str] | None = None, expired: bool = False) -> None:
    self.user_countries[user_id] = country_id
    for token in tokens if tokens is not None else (f"token-{user_id}",):
      self.devices.append((token, user_id, expired))

  def populate(self, country_id: int, count: int, *, first_user_id: int = 1) -> None:
    for user_id in range(first_user_id, first_user_id + count):
      self.add_user(user_id, country_id)

  async def find_devices(self, query: DeviceQuery) -> list[Device]:
    self.queries.append(query)
    found: list[Device] = []
    for token, user_id, expired in self.devices:
      country_id = self.user_countries.get(user_id)
      if country_id is None or country_id not in query.country_ids:
        continue
      if expired and not query.include_expired:
        continue
      found.append(Device(token=token, user_id=user_id, country_id=country_id))
    return found


class InMemoryResumeLog:
  def __init__(self, initial: Mapping[int, Set[int]] | None = None) -> None:
    self.state: ClaimMap = {key: set(value) for key, value in (initial or {}).items()}
    self.saves = 0
    self.fail_saves = 0

  async def load(self) -> ClaimMap:
    return copy.deepcopy(self.state)

  async def save(self, claims: Mapping[int, Set[int]]) -> None:
    if self.fail_saves:
      self.fail_saves -= 1
      raise PersistenceError("resume log unavailable")
    self.saves += 1
    self.state = {key: set(value) for key, value in claims.items()}


class InMemoryTransactionalResumeLog(InMemoryResumeLog):
  """Claims and progress columns land together, like the Postgres backend."""

  def __init__(self, store: InMemoryNotificationStore, initial: Mapping[int, Set[int]] | None = None) -> None:
    super().__init__(initial)
    self._store = store
    self.checkpoints: list[ProgressCheckpoint] = []

  async def save_checkpoint(self, claims: Mapping[int, Set[int]], checkpoint: ProgressCheckpoint) -> None:
    if self.fail_saves:
      self.fail_saves -= 1
      raise PersistenceError("checkpoint failed")
    notification_id = checkpoint.notification_id
    if notification_id in claims:
      self.state[notification_id] = set(claims[notification_id])
    else:
      self.state.pop(notification_id, None)
    self._store.apply_checkpoint(checkpoint)
    self.checkpoints.append(checkpoint)


class RecordingPushSender:
  """Thread-safe sender that records every attempt."""

  def __init__(self, *, rejected: Iterable[str] = (), exploding: Iterable[str] = ()) -> None:
    self.rejected = set(rejected)
    self.exploding = set(exploding)
    self.calls: list[tuple[str, str, str]] = []
    self._lock = threading.Lock()

  def send(self, title: str, message: str, token: str) -> bool:
    with self._lock:
      self.calls.append((title, message, token))
    if token in self.exploding:
      raise RuntimeError(f"provider exploded for {token}")
    return token not in self.rejected

  @property
  def tokens(self) -> list[str]:
    return [token for _, _, token in self.calls]


@pytest.fixture
def store():
  return InMemoryNotificationStore(countries={4})


@pytest.fixture
def directory():
  return FakeDeviceDirectory()


@pytest.fixture
def resume_log():
  return InMemoryResumeLog()


@pytest.fixture
def sender():
  return RecordingPushSender()


@pytest.fixture
def make_dispatcher(store, directory, resume_log, sender):
  def _make(*, batch_size: int = 100, send_concurrency: int = 1, **overrides) -> BatchDispatcher:
    collaborators = {"store": store, "directory": directory, "resume_log": resume_log, "push_sender": sender}
    collaborators.update(overrides)
    return BatchDispatcher(config=DispatcherConfig(batch_size=batch_size, send_concurrency=send_concurrency), **collaborators)

  return _make
