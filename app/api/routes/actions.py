"""Single-endpoint API selecting the operation by an ``action`` field."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException, status

from app.api.deps import get_dispatcher, get_query_service, get_submission_service, task_secret_valid
from app.api.models import ActionRequest, CronAction, CycleSummaryItem, DetailsAction, NotificationDetails, SendAction, SubmitNotificationResult
from app.api.responses import envelope
from app.config import Settings, get_settings
from app.notifications.dispatcher import BatchDispatcher
from app.notifications.queries import NotificationQueryService
from app.notifications.submission import SubmissionService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", status_code=status.HTTP_200_OK)
async def handle_action(
  payload: Annotated[ActionRequest, Body(discriminator="action")],
  settings: Annotated[Settings, Depends(get_settings)],
  submission: Annotated[SubmissionService, Depends(get_submission_service)],
  queries: Annotated[NotificationQueryService, Depends(get_query_service)],
  dispatcher: Annotated[BatchDispatcher, Depends(get_dispatcher)],
  authorization: Annotated[str | None, Header()] = None,
  x_pushcast_task_secret: Annotated[str | None, Header()] = None,
) -> dict[str, Any]:
  """Dispatch ``send``, ``details`` and ``cron`` actions to their services."""
  if isinstance(payload, SendAction):
    notification_id = await submission.submit(payload.title, payload.message, payload.country_id)
    return envelope(SubmitNotificationResult(notification_id=notification_id))

  if isinstance(payload, DetailsAction):
    snapshot = await queries.get_details(payload.notification_id)
    return envelope(NotificationDetails.from_snapshot(snapshot))

  if isinstance(payload, CronAction):
    if not task_secret_valid(settings, authorization=authorization, task_secret=x_pushcast_task_secret):
      logger.warning("Unauthorized cron action")
      raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")
    summaries = await dispatcher.dispatch_cycle()
    return envelope([CycleSummaryItem.from_summary(summary) for summary in summaries])

  raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported action.")
