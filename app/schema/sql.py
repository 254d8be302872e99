from __future__ import annotations

import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Country(Base):
  __tablename__ = "countries"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  name: Mapped[str] = mapped_column(String(255), nullable=False)


class User(Base):
  __tablename__ = "users"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  # Devices inherit their audience country from the owning user at query time.
  country_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("countries.id", ondelete="SET NULL"), index=True, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

  devices: Mapped[list[Device]] = relationship(back_populates="user", cascade="all, delete-orphan")


class Device(Base):
  __tablename__ = "devices"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
  token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
  expired: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false", index=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

  user: Mapped[User] = relationship(back_populates="devices")
