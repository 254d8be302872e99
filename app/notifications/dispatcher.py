"""Batch dispatch of queued notifications to country audiences.

One call to ``BatchDispatcher.dispatch_cycle`` is a cycle. Each unfinished
notification gets at most ``batch_size`` new devices per cycle; the users
selected for a batch are claimed in the resume log before anything is sent, so
a later cycle never selects them again, whether or not delivery succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from app.notifications.contracts import PushSender
from app.notifications.cycle_lock import CycleLock, NullCycleLock
from app.notifications.devices import DeviceDirectory
from app.notifications.errors import PersistenceError
from app.notifications.models import BatchPlan, CycleSummary, Device, DeviceQuery, Notification, NotificationStatus, NotificationUpdate, ProgressCheckpoint
from app.notifications.resume_log import ClaimMap, ResumeLog, TransactionalResumeLog
from app.notifications.store import NotificationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatcherConfig:
  """Tunables for a dispatch cycle."""

  batch_size: int = 100
  send_concurrency: int = 1

  def __post_init__(self) -> None:
    if self.batch_size <= 0:
      raise ValueError("batch_size must be a positive integer.")
    if self.send_concurrency <= 0:
      raise ValueError("send_concurrency must be a positive integer.")


def plan_batch(candidates: Sequence[Device], claimed: set[int], batch_size: int) -> BatchPlan:
  """Drop already-claimed users and split the rest at ``batch_size``, keeping candidate order."""
  pending = [device for device in candidates if device.user_id not in claimed]
  return BatchPlan(this_run=pending[:batch_size], next_run=pending[batch_size:])


def group_by_country(devices: Sequence[Device]) -> dict[int, list[Device]]:
  grouped: dict[int, list[Device]] = {}
  for device in devices:
    grouped.setdefault(device.country_id, []).append(device)
  return grouped


class BatchDispatcher:
  """Runs dispatch cycles over the notification store, device directory and resume log."""

  def __init__(self, *, store: NotificationStore, directory: DeviceDirectory, resume_log: ResumeLog, push_sender: PushSender, config: DispatcherConfig, cycle_lock: CycleLock | None = None) -> None:
    self._store = store
    self._directory = directory
    self._resume_log = resume_log
    self._push_sender = push_sender
    self._config = config
    self._cycle_lock = cycle_lock or NullCycleLock()

  async def dispatch_cycle(self) -> list[CycleSummary]:
    """Run one cycle and return per-notification summaries in processing order."""
    async with self._cycle_lock.acquire() as acquired:
      if not acquired:
        logger.warning("Dispatch cycle skipped; another cycle holds the lock.")
        return []
      return await self._run_cycle()

  async def _run_cycle(self) -> list[CycleSummary]:
    notifications = sorted(await self._store.list_unfinished(), key=lambda notification: notification.id)
    if not notifications:
      return []

    country_ids = frozenset(notification.country_id for notification in notifications if notification.country_id is not None)
    devices = await self._directory.find_devices(DeviceQuery(country_ids=country_ids))
    devices_by_country = group_by_country(devices)
    claims = await self._resume_log.load()
    logger.info("Dispatch cycle started notifications=%d countries=%d devices=%d", len(notifications), len(country_ids), len(devices))

    summaries: list[CycleSummary] = []
    for notification in notifications:
      candidates = devices_by_country.get(notification.country_id, []) if notification.country_id is not None else []
      summary = await self._dispatch_notification(notification, candidates, claims)
      if summary is not None:
        summaries.append(summary)

    logger.info("Dispatch cycle finished processed=%d sent=%d failed=%d", len(summaries), sum(s.sent for s in summaries), sum(s.failed for s in summaries))
    return summaries

  async def _dispatch_notification(self, notification: Notification, candidates: list[Device], claims: ClaimMap) -> CycleSummary | None:
    claimed = claims.get(notification.id, set())
    plan = plan_batch(candidates, claimed, self._config.batch_size)
    in_progress = notification.in_progress + len(plan.this_run)
    in_queue = len(plan.next_run)
    status = NotificationStatus.FINISHED if plan.drained else NotificationStatus.STARTED

    previous_entry = claims.get(notification.id)
    if plan.drained:
      claims.pop(notification.id, None)
    else:
      claims[notification.id] = claimed | {device.user_id for device in plan.this_run}

    # Claims must be durable before the first send of this batch.
    try:
      await self._checkpoint(claims, ProgressCheckpoint(notification_id=notification.id, in_progress=in_progress, in_queue=in_queue, status=status))
    except PersistenceError:
      logger.error("Claim checkpoint failed; skipping notification_id=%s this cycle", notification.id, exc_info=True)
      _restore_entry(claims, notification.id, previous_entry)
      return None

    sent, failed = await self._send_batch(notification, plan.this_run)

    changes = NotificationUpdate(sent=notification.sent + sent, failed=notification.failed + failed, in_progress=in_progress, in_queue=in_queue, status=status)
    try:
      await self._store.update(notification.id, changes)
    except PersistenceError:
      # Sends already happened, so the summary is still reported.
      logger.error("Counter update failed notification_id=%s sent=%d failed=%d", notification.id, sent, failed, exc_info=True)

    logger.info("Notification dispatched notification_id=%s batch=%d remaining=%d sent=%d failed=%d status=%s", notification.id, len(plan.this_run), in_queue, sent, failed, status.name)
    return CycleSummary(notification_id=notification.id, title=notification.title, message=notification.message, sent=sent, failed=failed)

  async def _checkpoint(self, claims: ClaimMap, checkpoint: ProgressCheckpoint) -> None:
    if isinstance(self._resume_log, TransactionalResumeLog):
      await self._resume_log.save_checkpoint(claims, checkpoint)
    else:
      await self._resume_log.save(claims)

  async def _send_batch(self, notification: Notification, devices: Sequence[Device]) -> tuple[int, int]:
    if not devices:
      return 0, 0

    if self._config.send_concurrency == 1:
      results = [await self._send_one(notification, device) for device in devices]
    else:
      semaphore = asyncio.Semaphore(self._config.send_concurrency)

      async def _bounded(device: Device) -> bool:
        async with semaphore:
          return await self._send_one(notification, device)

      results = await asyncio.gather(*(_bounded(device) for device in devices))

    sent = sum(1 for delivered in results if delivered)
    return sent, len(results) - sent

  async def _send_one(self, notification: Notification, device: Device) -> bool:
    try:
      return bool(await run_in_threadpool(self._push_sender.send, notification.title, notification.message, device.token))
    except Exception:  # noqa: BLE001
      # One device must never abort the batch; the failure is counted instead.
      logger.error("Push sender raised notification_id=%s user_id=%s", notification.id, device.user_id, exc_info=True)
      return False


def _restore_entry(claims: ClaimMap, notification_id: int, previous: set[int] | None) -> None:
  if previous is None:
    claims.pop(notification_id, None)
  else:
    claims[notification_id] = previous
