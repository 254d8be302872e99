"""SQLAlchemy model for country-scoped push notifications."""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, SmallInteger, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class PushNotification(Base):
  """Persist a submitted notification and its dispatch counters."""

  __tablename__ = "notifications"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  country_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("countries.id", ondelete="SET NULL", name="notifications_country_id"), index=True, nullable=True)
  status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0, server_default="0", index=True)
  in_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  in_queue: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0", index=True)
  sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  title: Mapped[str] = mapped_column(String(255), nullable=False)
  message: Mapped[str] = mapped_column(String(255), nullable=False)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
