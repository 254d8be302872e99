"""Factory helpers wiring notification services from settings."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings, get_settings
from app.core.database import get_db_engine, get_session_factory
from app.core.firebase import initialize_firebase
from app.notifications.contracts import PushSender
from app.notifications.cycle_lock import CycleLock, LocalCycleLock, PostgresAdvisoryCycleLock
from app.notifications.devices import PostgresDeviceDirectory
from app.notifications.dispatcher import BatchDispatcher, DispatcherConfig
from app.notifications.push_sender import FcmPushSender, NullPushSender
from app.notifications.queries import NotificationQueryService
from app.notifications.resume_log import JsonFileResumeLog, PostgresResumeLog, ResumeLog
from app.notifications.store import PostgresNotificationStore
from app.notifications.submission import SubmissionService


@dataclass(frozen=True)
class NotificationServices:
  """Process-wide service graph shared by routes, the scheduler and scripts."""

  submission: SubmissionService
  queries: NotificationQueryService
  dispatcher: BatchDispatcher


def build_push_sender(settings: Settings) -> PushSender:
  """Use FCM only when it is selected and Firebase initializes."""
  if settings.push_provider == "fcm":
    firebase_app = initialize_firebase(settings)
    if firebase_app is not None:
      return FcmPushSender(app=firebase_app)
  return NullPushSender()


def build_resume_log(settings: Settings, session_factory: async_sessionmaker[AsyncSession]) -> ResumeLog:
  if settings.resume_log_backend == "postgres":
    return PostgresResumeLog(session_factory)
  return JsonFileResumeLog(settings.resume_log_path)


def build_cycle_lock(settings: Settings) -> CycleLock:
  """Share the lock across instances when Postgres is configured.

  The service graph always has a database, so the local lock only serves
  callers that wire a dispatcher from settings without a DSN.
  """
  engine = get_db_engine() if settings.pg_dsn else None
  if engine is not None:
    return PostgresAdvisoryCycleLock(engine)
  return LocalCycleLock()


def build_notification_services(settings: Settings) -> NotificationServices:
  """Construct the notification service graph based on environment configuration."""
  session_factory = get_session_factory()
  if session_factory is None:
    raise RuntimeError("Database connection is not configured (PUSHCAST_PG_DSN is missing).")

  store = PostgresNotificationStore(session_factory)
  dispatcher = BatchDispatcher(
    store=store,
    directory=PostgresDeviceDirectory(session_factory),
    resume_log=build_resume_log(settings, session_factory),
    push_sender=build_push_sender(settings),
    config=DispatcherConfig(batch_size=settings.push_batch_size, send_concurrency=settings.send_concurrency),
    cycle_lock=build_cycle_lock(settings),
  )
  return NotificationServices(submission=SubmissionService(store=store), queries=NotificationQueryService(store=store), dispatcher=dispatcher)


@lru_cache(maxsize=1)
def get_notification_services() -> NotificationServices:
  """Build the service graph once per process so the cycle lock is shared."""
  return build_notification_services(get_settings())
