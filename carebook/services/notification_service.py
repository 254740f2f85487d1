"""
Unified Notification Service
Delivers a queued notification on each of its resolved channels (email,
SMS, push) and builds queue requests for appointment and payment events
"""

import logging
from typing import Optional, Protocol

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..domain.notifications.schemas import (
    AppointmentPayload,
    NotificationChannel,
    PaymentPayload,
    SendNotification,
)
from ..models_notification import NotificationDeliveryLog, NotificationQueueItem
from ..shared.currency import format_inr
from ..shared.fields import Email
from ..shared.validators import is_valid_for_sms
from ..utils.datetime_utils import utc_now
from ..utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)

# Preferred channel order when an item asks for several
CHANNEL_ORDER = ("push", "email", "sms")


class ChannelSender(Protocol):
    async def send(self, item: NotificationQueueItem) -> tuple[bool, Optional[str]]: ...


class ChannelResult(BaseModel):
    channel: str
    success: bool
    error: Optional[str] = None


class DispatchResult(BaseModel):
    results: list[ChannelResult] = []

    @property
    def success(self) -> bool:
        """Delivered if at least one channel got through"""
        return any(result.success for result in self.results)

    @property
    def error_message(self) -> Optional[str]:
        errors = [f"{r.channel}: {r.error}" for r in self.results if not r.success and r.error]
        return "; ".join(errors) or None


class NotificationDispatcher:
    """
    Sends queue items through the injected channel senders.

    Each attempt is recorded as a NotificationDeliveryLog row when a session
    is supplied. A sender that raises is treated like one that reports failure.
    """

    def __init__(
        self,
        email_sender: Optional[ChannelSender] = None,
        sms_sender: Optional[ChannelSender] = None,
        push_sender: Optional[ChannelSender] = None,
        db: Optional[Session] = None,
    ):
        self.senders = {"email": email_sender, "sms": sms_sender, "push": push_sender}
        self.db = db

    async def dispatch(self, item: NotificationQueueItem, channels) -> DispatchResult:
        outcome = DispatchResult()

        for channel in sorted(set(channels), key=CHANNEL_ORDER.index):
            result = await self._send_on(channel, item)
            outcome.results.append(result)
            self._log_delivery(item, result)

        if outcome.success:
            logger.info(f"✅ Notification {item.id} ({item.type}) delivered to user {item.user_id}")
        else:
            logger.warning(f"⚠️ Notification {item.id} not delivered: {outcome.error_message}")
        return outcome

    async def _send_on(self, channel: str, item: NotificationQueueItem) -> ChannelResult:
        sender = self.senders.get(channel)
        if sender is None:
            return ChannelResult(channel=channel, success=False, error=f"No {channel} sender configured")

        try:
            success, error = await sender.send(item)
        except Exception as e:
            logger.error(f"❌ Failed to send {item.type} {channel} notification {item.id}: {e}")
            return ChannelResult(channel=channel, success=False, error=str(e))

        return ChannelResult(channel=channel, success=success, error=None if success else error)

    def _log_delivery(self, item: NotificationQueueItem, result: ChannelResult):
        if self.db is None or item.id is None:
            return
        self.db.add(
            NotificationDeliveryLog(
                notification_id=item.id,
                user_id=item.user_id,
                channel=result.channel,
                status="sent" if result.success else "failed",
                error_message=result.error,
                sent_at=utc_now() if result.success else None,
            )
        )
        self.db.commit()


# ============================================
# Event notifications
# Each helper returns a validated request ready for NotificationQueue.enqueue
# ============================================


class Recipient(BaseModel):
    user_id: str
    email: Optional[Email] = None
    name: Optional[str] = None
    phone: Optional[str] = None


DEFAULT_CHANNELS: tuple[NotificationChannel, ...] = ("email", "sms", "push")


def _request(recipient: Recipient, notification_type: str, title: str, body: str, payload, appointment_id=None):
    return SendNotification(
        user_id=recipient.user_id,
        type=notification_type,
        title=title,
        body=body,
        channels=list(DEFAULT_CHANNELS),
        user_email=recipient.email,
        user_name=recipient.name,
        # Landlines cannot receive SMS
        user_phone=recipient.phone if is_valid_for_sms(recipient.phone) else None,
        appointment_id=appointment_id,
        payload=payload,
    )


def appointment_confirmed_notification(recipient: Recipient, appointment: AppointmentPayload) -> SendNotification:
    body = (
        f"Your appointment for {sanitize_text(appointment.service_name)} with "
        f"{sanitize_text(appointment.provider_name)} on {appointment.appointment_date} at "
        f"{appointment.appointment_time} has been confirmed."
    )
    return _request(
        recipient, "appointment_confirmed", "Appointment Confirmed", body, appointment, appointment.appointment_id
    )


def appointment_reminder_notification(recipient: Recipient, appointment: AppointmentPayload) -> SendNotification:
    body = (
        f"Reminder: You have an appointment for {sanitize_text(appointment.service_name)} with "
        f"{sanitize_text(appointment.provider_name)} on {appointment.appointment_date} at "
        f"{appointment.appointment_time}."
    )
    return _request(
        recipient, "appointment_reminder", "Appointment Reminder", body, appointment, appointment.appointment_id
    )


def appointment_cancelled_notification(recipient: Recipient, appointment: AppointmentPayload) -> SendNotification:
    body = (
        f"Your appointment for {sanitize_text(appointment.service_name)} on "
        f"{appointment.appointment_date} has been cancelled."
    )
    if appointment.reason:
        body += f" Reason: {sanitize_text(appointment.reason, max_length=200)}"
    return _request(
        recipient, "appointment_cancelled", "Appointment Cancelled", body, appointment, appointment.appointment_id
    )


def appointment_rescheduled_notification(recipient: Recipient, appointment: AppointmentPayload) -> SendNotification:
    previous = ""
    if appointment.previous_date:
        previous = f" from {appointment.previous_date}"
        if appointment.previous_time:
            previous += f" at {appointment.previous_time}"
    body = (
        f"Your appointment for {sanitize_text(appointment.service_name)} with "
        f"{sanitize_text(appointment.provider_name)} has been rescheduled{previous} to "
        f"{appointment.appointment_date} at {appointment.appointment_time}."
    )
    return _request(
        recipient, "appointment_rescheduled", "Appointment Rescheduled", body, appointment, appointment.appointment_id
    )


def payment_success_notification(recipient: Recipient, payment: PaymentPayload) -> SendNotification:
    service = f" for {sanitize_text(payment.service_name)}" if payment.service_name else ""
    body = f"Your payment of {format_inr(payment.amount)}{service} was successful."
    return _request(recipient, "payment_success", "Payment Successful", body, payment, payment.appointment_id)


def payment_failed_notification(recipient: Recipient, payment: PaymentPayload) -> SendNotification:
    service = f" for {sanitize_text(payment.service_name)}" if payment.service_name else ""
    body = f"Your payment of {format_inr(payment.amount)}{service} could not be processed."
    if payment.reason:
        body += f" Reason: {sanitize_text(payment.reason, max_length=200)}"
    body += " Please try again."
    return _request(recipient, "payment_failed", "Payment Failed", body, payment, payment.appointment_id)
