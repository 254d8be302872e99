"""Shared FastAPI dependencies for notification services and task authentication."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.config import Settings, get_settings
from app.notifications.dispatcher import BatchDispatcher
from app.notifications.factory import get_notification_services
from app.notifications.queries import NotificationQueryService
from app.notifications.submission import SubmissionService

logger = logging.getLogger(__name__)


def get_submission_service() -> SubmissionService:
  return get_notification_services().submission


def get_query_service() -> NotificationQueryService:
  return get_notification_services().queries


def get_dispatcher() -> BatchDispatcher:
  return get_notification_services().dispatcher


def task_secret_valid(settings: Settings, *, authorization: str | None, task_secret: str | None) -> bool:
  """Accept the dedicated secret header or a bearer token carrying the same secret."""
  if not settings.task_secret:
    return False
  shared_secret_valid = secrets.compare_digest((task_secret or ""), settings.task_secret)
  bearer_valid = secrets.compare_digest((authorization or ""), f"Bearer {settings.task_secret}")
  return shared_secret_valid or bearer_valid


def require_task_secret(
  settings: Annotated[Settings, Depends(get_settings)], authorization: Annotated[str | None, Header()] = None, x_pushcast_task_secret: Annotated[str | None, Header()] = None
) -> None:
  """Reject cycle triggers that do not carry the configured task secret."""
  # Secure-by-default: an unset secret disables the endpoint instead of opening it.
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")
  if not task_secret_valid(settings, authorization=authorization, task_secret=x_pushcast_task_secret):
    logger.warning("Unauthorized dispatch cycle trigger")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")
