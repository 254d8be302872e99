"""Domain models for country-scoped push notification dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class NotificationStatus(IntEnum):
  IN_QUEUE = 0
  STARTED = 1
  FINISHED = 2


@dataclass(frozen=True)
class Notification:
  """A notification row as read at the start of a cycle."""

  id: int
  country_id: int | None
  title: str
  message: str
  status: NotificationStatus = NotificationStatus.IN_QUEUE
  sent: int = 0
  failed: int = 0
  in_progress: int = 0
  in_queue: int = 0


@dataclass(frozen=True)
class NotificationDraft:
  """Validated input for a new notification."""

  title: str
  message: str
  country_id: int


@dataclass(frozen=True)
class NotificationSnapshot:
  """Read-only view returned by detail lookups."""

  id: int
  title: str
  message: str
  sent: int
  failed: int
  in_progress: int
  in_queue: int


@dataclass(frozen=True)
class NotificationUpdate:
  """Absolute counter values written after a batch has been sent."""

  sent: int
  failed: int
  in_progress: int
  in_queue: int
  status: NotificationStatus


@dataclass(frozen=True)
class ProgressCheckpoint:
  """Progress columns that are known before any send of a batch happens."""

  notification_id: int
  in_progress: int
  in_queue: int
  status: NotificationStatus


@dataclass(frozen=True)
class Device:
  """An active device with the country of its owning user."""

  token: str
  user_id: int
  country_id: int


@dataclass(frozen=True)
class DeviceQuery:
  """Immutable filter for the device directory."""

  country_ids: frozenset[int]
  include_expired: bool = False


@dataclass(frozen=True)
class CycleSummary:
  """Per-notification outcome of one cycle."""

  notification_id: int
  title: str
  message: str
  sent: int
  failed: int

  def to_dict(self) -> dict[str, int | str]:
    return {"notification_id": self.notification_id, "title": self.title, "message": self.message, "sent": self.sent, "failed": self.failed}


@dataclass
class BatchPlan:
  """Split of a notification's pending candidates for the current cycle."""

  this_run: list[Device] = field(default_factory=list)
  next_run: list[Device] = field(default_factory=list)

  @property
  def drained(self) -> bool:
    return not self.next_run
