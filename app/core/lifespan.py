import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from app.core.database import dispose_engine
from app.core.logging import initialize_logging
from app.notifications.factory import get_notification_services
from app.notifications.scheduler import CycleScheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Initialize logging, start the optional cycle scheduler and release the engine on shutdown."""
  from app.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  try:
    initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except Exception:  # noqa: BLE001
    # Fall back to uvicorn's default handlers rather than refusing to serve.
    logger.warning("Initial logging setup failed.", exc_info=True)

  logger.info("Starting environment=%s database=%s push_provider=%s resume_log=%s", settings.environment, _redact_dsn(settings.pg_dsn), settings.push_provider, settings.resume_log_backend)

  scheduler: CycleScheduler | None = None
  if settings.cycle_interval_seconds:
    scheduler = CycleScheduler(dispatcher=get_notification_services().dispatcher, interval_seconds=settings.cycle_interval_seconds)
    scheduler.start()
  app.state.cycle_scheduler = scheduler

  try:
    yield
  finally:
    if scheduler is not None:
      await scheduler.stop()
    await dispose_engine()
    logger.info("Shutdown complete.")


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"

  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"

  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
