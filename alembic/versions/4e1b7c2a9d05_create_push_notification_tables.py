"""Create countries, users, devices, notifications and notification claims.

Revision ID: 4e1b7c2a9d05
Revises:
Create Date: 2026-10-12 09:41:27.511204
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "4e1b7c2a9d05"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table("countries", sa.Column("id", sa.Integer(), autoincrement=True, nullable=False), sa.Column("name", sa.String(length=255), nullable=False), sa.PrimaryKeyConstraint("id"))

  op.create_table(
    "users",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("country_id", sa.Integer(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["country_id"], ["countries.id"], ondelete="SET NULL"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_users_country_id"), "users", ["country_id"], unique=False)

  op.create_table(
    "devices",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("user_id", sa.Integer(), nullable=False),
    sa.Column("token", sa.Text(), nullable=False),
    sa.Column("expired", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("token"),
  )
  op.create_index(op.f("ix_devices_user_id"), "devices", ["user_id"], unique=False)
  op.create_index(op.f("ix_devices_expired"), "devices", ["expired"], unique=False)

  op.create_table(
    "notifications",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("country_id", sa.Integer(), nullable=True),
    sa.Column("status", sa.SmallInteger(), server_default="0", nullable=False),
    sa.Column("in_progress", sa.Integer(), server_default="0", nullable=False),
    sa.Column("in_queue", sa.Integer(), server_default="0", nullable=False),
    sa.Column("sent", sa.Integer(), server_default="0", nullable=False),
    sa.Column("failed", sa.Integer(), server_default="0", nullable=False),
    sa.Column("title", sa.String(length=255), nullable=False),
    sa.Column("message", sa.String(length=255), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["country_id"], ["countries.id"], name="notifications_country_id", ondelete="SET NULL"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_notifications_country_id"), "notifications", ["country_id"], unique=False)
  op.create_index(op.f("ix_notifications_status"), "notifications", ["status"], unique=False)
  op.create_index(op.f("ix_notifications_in_queue"), "notifications", ["in_queue"], unique=False)

  op.create_table(
    "notification_claims",
    sa.Column("notification_id", sa.Integer(), nullable=False),
    sa.Column("user_id", sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(["notification_id"], ["notifications.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("notification_id", "user_id"),
  )


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_table("notification_claims")
  op.drop_index(op.f("ix_notifications_in_queue"), table_name="notifications")
  op.drop_index(op.f("ix_notifications_status"), table_name="notifications")
  op.drop_index(op.f("ix_notifications_country_id"), table_name="notifications")
  op.drop_table("notifications")
  op.drop_index(op.f("ix_devices_expired"), table_name="devices")
  op.drop_index(op.f("ix_devices_user_id"), table_name="devices")
  op.drop_table("devices")
  op.drop_index(op.f("ix_users_country_id"), table_name="users")
  op.drop_table("users")
  op.drop_table("countries")
