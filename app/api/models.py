"""Request and response payloads for the push notification API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from app.notifications.models import CycleSummary, NotificationSnapshot


class SubmitNotificationRequest(BaseModel):
  """Payload for queueing a notification to every active device of a country."""

  title: StrictStr = Field(description="Push title (at most 255 characters).", examples=["Hello"])
  message: StrictStr = Field(description="Push body (at most 255 characters).", examples=["World"])
  country_id: int = Field(description="Target country id.", examples=[4])
  model_config = ConfigDict(extra="ignore")


class SendAction(SubmitNotificationRequest):
  action: Literal["send"]


class DetailsAction(BaseModel):
  action: Literal["details"]
  notification_id: int = Field(examples=[123])
  model_config = ConfigDict(extra="ignore")


class CronAction(BaseModel):
  action: Literal["cron"]
  model_config = ConfigDict(extra="ignore")


ActionRequest = SendAction | DetailsAction | CronAction


class SubmitNotificationResult(BaseModel):
  notification_id: int


class NotificationDetails(BaseModel):
  """Progress counters of one notification."""

  id: int
  title: str
  message: str
  sent: int
  failed: int
  in_progress: int
  in_queue: int

  @classmethod
  def from_snapshot(cls, snapshot: NotificationSnapshot) -> NotificationDetails:
    return cls(id=snapshot.id, title=snapshot.title, message=snapshot.message, sent=snapshot.sent, failed=snapshot.failed, in_progress=snapshot.in_progress, in_queue=snapshot.in_queue)


class CycleSummaryItem(BaseModel):
  notification_id: int
  title: str
  message: str
  sent: int
  failed: int

  @classmethod
  def from_summary(cls, summary: CycleSummary) -> CycleSummaryItem:
    return cls(notification_id=summary.notification_id, title=summary.title, message=summary.message, sent=summary.sent, failed=summary.failed)
