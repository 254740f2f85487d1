"""
Notification Models
Database models for the notification queue, user preferences, device
tokens, delivery logs and admin batches
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class NotificationQueueItem(Base):
    """A notification waiting for (or done with) delivery"""

    __tablename__ = "notification_queue"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    user_email = Column(String(254), nullable=True)
    user_name = Column(String(100), nullable=True)
    user_phone = Column(String(20), nullable=True)

    # Message
    title = Column(String(100), nullable=False)
    body = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    payload = Column(JSON, nullable=True)
    appointment_id = Column(String(128), nullable=True)

    # Lifecycle: pending -> processing -> sent | failed | cancelled
    status = Column(String(20), nullable=False, default="pending")
    retry_count = Column(Integer, nullable=False, default=0)
    max_retries = Column(Integer, nullable=False, default=3)
    scheduled_for = Column(DateTime, nullable=False)
    sent_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    delivery_logs = relationship("NotificationDeliveryLog", back_populates="notification")

    __table_args__ = (Index("ix_notification_queue_status_scheduled", "status", "scheduled_for"),)


class NotificationPreferenceRecord(Base):
    """Per-user channel and quiet-hours settings, stored as JSON"""

    __tablename__ = "notification_preferences"

    user_id = Column(String(128), primary_key=True)
    settings = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class DeviceToken(Base):
    """Push registration token for one of a user's devices"""

    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    token = Column(String(512), nullable=False, unique=True)
    platform = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, server_default=func.now())
    last_used_at = Column(DateTime, nullable=True)


class NotificationDeliveryLog(Base):
    """One row per channel delivery attempt"""

    __tablename__ = "notification_delivery_logs"

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(Integer, ForeignKey("notification_queue.id"), nullable=False, index=True)
    user_id = Column(String(128), nullable=False)
    channel = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    notification = relationship("NotificationQueueItem", back_populates="delivery_logs")


class NotificationBatch(Base):
    """Admin-triggered send of a fixed list of queue items"""

    __tablename__ = "notification_batches"

    id = Column(Integer, primary_key=True, index=True)
    items = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="pending")
    total_items = Column(Integer, nullable=False, default=0)
    sent_items = Column(Integer, nullable=False, default=0)
    failed_items = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
