"""Contracts for push notification delivery."""

from __future__ import annotations

from typing import Protocol


class NotificationError(Exception):
  """Base class for all notification delivery failures."""


class NotificationProviderError(NotificationError):
  """Exception raised when the push provider returns a delivery error."""


class InvalidDeviceTokenError(NotificationProviderError):
  """Exception raised when a device token is unregistered or malformed."""


class TransientPushProviderError(NotificationProviderError):
  """Exception raised when transient push provider failures exhaust retries."""


class PushSender(Protocol):
  """Delivery contract for sending one push notification to one device."""

  def send(self, title: str, message: str, token: str) -> bool:
    """Send synchronously and report whether the provider accepted the message."""
