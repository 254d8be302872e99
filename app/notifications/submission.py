"""Validation and creation of new country-scoped notifications."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from app.notifications.errors import NotFoundError, ValidationError
from app.notifications.models import NotificationDraft
from app.notifications.store import NotificationStore
from app.notifications.validation import SUBMISSION_RULES, FieldRule, group_errors, validate_fields

logger = logging.getLogger(__name__)


class SubmissionService:
  """Accept a title, message and country and queue the notification for dispatch."""

  def __init__(self, *, store: NotificationStore, rules: Sequence[FieldRule] = SUBMISSION_RULES) -> None:
    self._store = store
    self._rules = tuple(rules)

  async def submit(self, title: str, message: str, country_id: int) -> int:
    """Create a queued notification and return its id.

    Raises ``ValidationError`` for rule violations and ``NotFoundError`` for an
    unknown country; nothing is written in either case.
    """
    errors = validate_fields({"title": title, "message": message}, self._rules)
    if errors:
      raise ValidationError(group_errors(errors))

    if not await self._store.country_exists(country_id):
      raise NotFoundError("Country", country_id)

    notification_id = await self._store.create(NotificationDraft(title=title, message=message, country_id=country_id))
    logger.info("Notification queued notification_id=%s country_id=%s", notification_id, country_id)
    return notification_id
