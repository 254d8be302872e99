"""Optional in-process trigger that runs dispatch cycles on a fixed interval."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from app.notifications.dispatcher import BatchDispatcher

logger = logging.getLogger(__name__)


class CycleScheduler:
  """Run ``dispatch_cycle`` every ``interval_seconds`` until stopped."""

  def __init__(self, *, dispatcher: BatchDispatcher, interval_seconds: float) -> None:
    if interval_seconds <= 0:
      raise ValueError("interval_seconds must be positive.")
    self._dispatcher = dispatcher
    self._interval_seconds = interval_seconds
    self._task: asyncio.Task[None] | None = None

  @property
  def running(self) -> bool:
    return self._task is not None and not self._task.done()

  def start(self) -> None:
    if self.running:
      return
    self._task = asyncio.create_task(self._loop(), name="pushcast-cycle-scheduler")
    logger.info("Cycle scheduler started interval_seconds=%s", self._interval_seconds)

  async def stop(self) -> None:
    if self._task is None:
      return
    self._task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await self._task
    self._task = None
    logger.info("Cycle scheduler stopped.")

  async def run_once(self) -> None:
    """Run a single cycle, logging instead of raising so the loop survives failures."""
    try:
      summaries = await self._dispatcher.dispatch_cycle()
    except Exception:  # noqa: BLE001
      logger.error("Scheduled dispatch cycle failed", exc_info=True)
      return
    logger.debug("Scheduled dispatch cycle processed=%d", len(summaries))

  async def _loop(self) -> None:
    while True:
      await self.run_once()
      await asyncio.sleep(self._interval_seconds)
