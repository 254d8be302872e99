"""SQLAlchemy model for per-notification device claims."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class NotificationClaim(Base):
  """One user already claimed for a notification in an earlier cycle."""

  __tablename__ = "notification_claims"

  notification_id: Mapped[int] = mapped_column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), primary_key=True)
  user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
