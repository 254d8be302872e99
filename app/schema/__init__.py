"""ORM models for countries, users, devices, notifications and claims."""

from .claims import NotificationClaim
from .notifications import PushNotification
from .sql import Country, Device, User

__all__ = ["Country", "Device", "NotificationClaim", "PushNotification", "User"]
