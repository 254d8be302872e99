"""Routes for queueing push notifications and reading their progress."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import get_query_service, get_submission_service
from app.api.models import NotificationDetails, SubmitNotificationRequest, SubmitNotificationResult
from app.api.responses import envelope
from app.notifications.queries import NotificationQueryService
from app.notifications.submission import SubmissionService

router = APIRouter()


@router.post("", status_code=status.HTTP_200_OK)
async def submit_notification(payload: SubmitNotificationRequest, service: Annotated[SubmissionService, Depends(get_submission_service)]) -> dict[str, Any]:
  """Queue a notification for every active device in the target country."""
  notification_id = await service.submit(payload.title, payload.message, payload.country_id)
  return envelope(SubmitNotificationResult(notification_id=notification_id))


@router.get("/{notification_id}", status_code=status.HTTP_200_OK)
async def get_notification_details(notification_id: int, service: Annotated[NotificationQueryService, Depends(get_query_service)]) -> dict[str, Any]:
  snapshot = await service.get_details(notification_id)
  return envelope(NotificationDetails.from_snapshot(snapshot))
