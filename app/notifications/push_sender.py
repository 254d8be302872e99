"""Push notification delivery implementations."""

from __future__ import annotations

import logging
import time

from firebase_admin import App, exceptions, messaging

from app.notifications.contracts import InvalidDeviceTokenError, NotificationProviderError, PushSender, TransientPushProviderError

logger = logging.getLogger(__name__)


class FcmPushSender(PushSender):
  """Firebase Cloud Messaging sender with retry and invalid-token handling."""

  def __init__(self, *, app: App | None = None, backoff_seconds: tuple[float, ...] = (0.5, 1.0)) -> None:
    self._app = app
    self._backoff_seconds = backoff_seconds

  def send(self, title: str, message: str, token: str) -> bool:
    """Deliver one message and report delivery as a boolean; provider errors never escape."""
    try:
      self._deliver(title=title, message=message, token=token)
    except InvalidDeviceTokenError as exc:
      logger.info("Push token rejected token=%s error=%s", _token_hint(token), exc)
      return False
    except NotificationProviderError as exc:
      logger.warning("Push delivery failed token=%s error=%s", _token_hint(token), exc)
      return False

    return True

  def _deliver(self, *, title: str, message: str, token: str) -> str:
    """Send with bounded retries for transient provider failures and return the message id."""
    payload = messaging.Message(token=token, notification=messaging.Notification(title=title, body=message))

    for attempt in range(len(self._backoff_seconds) + 1):
      try:
        return messaging.send(payload, app=self._app)
      except (messaging.UnregisteredError, messaging.SenderIdMismatchError) as exc:
        raise InvalidDeviceTokenError(f"Device token is no longer valid ({exc.code})") from exc
      except exceptions.InvalidArgumentError as exc:
        raise InvalidDeviceTokenError(f"Device token or payload rejected ({exc.code})") from exc
      except (exceptions.UnavailableError, exceptions.InternalError, exceptions.DeadlineExceededError) as exc:
        if attempt < len(self._backoff_seconds):
          # Back off briefly to avoid amplifying transient provider incidents.
          time.sleep(self._backoff_seconds[attempt])
          continue

        raise TransientPushProviderError(f"Transient push provider failure after retries ({exc.code})") from exc
      except exceptions.FirebaseError as exc:
        # Quota, auth and other provider responses are not retried within a send.
        raise NotificationProviderError(f"Push delivery failed ({exc.code})") from exc

    raise TransientPushProviderError("Push delivery exhausted retries")


class NullPushSender(PushSender):
  """No-op push sender used when push notifications are disabled or unconfigured."""

  def send(self, title: str, message: str, token: str) -> bool:
    """Drop the notification and report it as not delivered."""
    logger.debug("Push notifications disabled; dropping push token=%s", _token_hint(token))
    return False


def _token_hint(token: str) -> str:
  """Return a short suffix of a device token that is safe to log."""
  if len(token) <= 8:
    return "***"
  return f"...{token[-6:]}"
