"""Errors raised by notification submission, lookup and persistence."""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class NotificationServiceError(Exception):
  """Base class for service-level notification failures."""


class ValidationError(NotificationServiceError):
  """Raised when submitted fields break one or more validation rules."""

  def __init__(self, errors: Mapping[str, Sequence[str]]) -> None:
    super().__init__("Invalid data")
    self.errors: dict[str, list[str]] = {field: list(messages) for field, messages in errors.items()}


class NotFoundError(NotificationServiceError):
  """Raised when a referenced country or notification does not exist."""

  def __init__(self, entity: str, entity_id: int) -> None:
    super().__init__(f"{entity} {entity_id} not found")
    self.entity = entity
    self.entity_id = entity_id


class PersistenceError(NotificationServiceError):
  """Raised when a backing store cannot be read or written."""
