"""
Notification Queue
Persisted queue of notifications processed by a periodic sweep.

Item lifecycle::

    pending -> processing -> sent | failed | cancelled
    processing -> pending   (failed attempt with retries left)

Every status change is a conditional UPDATE on the current status, so two
overlapping sweeps cannot both claim the same item. An item left in
`processing` by a crashed sweep is never reclaimed automatically;
`find_stuck_processing` only reports such items.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import (
    NOTIFICATION_BATCH_SIZE,
    NOTIFICATION_MAX_RETRIES,
    NOTIFICATION_RETRY_BACKOFF_MINUTES,
    QUIET_HOURS_DEFER_MINUTES,
)
from ..domain.notifications.schemas import NOTIFICATION_STATUSES, QueueStats, SendNotification
from ..models_notification import NotificationBatch, NotificationQueueItem
from ..utils.datetime_utils import to_naive_utc, utc_now
from .errors import NotificationNotFoundError, NotificationStateError
from .notification_preferences import is_quiet_time, load_preferences, resolve_channels
from .notification_service import ChannelResult, DispatchResult, NotificationDispatcher

logger = logging.getLogger(__name__)


class SweepResult(BaseModel):
    processed: int = 0
    sent: int = 0
    failed: int = 0
    retried: int = 0
    deferred: int = 0
    cancelled: int = 0
    skipped: int = 0
    errors: int = 0


class NotificationQueue:
    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher,
        *,
        batch_size: int = NOTIFICATION_BATCH_SIZE,
        max_retries: int = NOTIFICATION_MAX_RETRIES,
        retry_backoff: timedelta = timedelta(minutes=NOTIFICATION_RETRY_BACKOFF_MINUTES),
        quiet_hours_delay: timedelta = timedelta(minutes=QUIET_HOURS_DEFER_MINUTES),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.quiet_hours_delay = quiet_hours_delay
        self.clock = clock

    # ============================================
    # Producers
    # ============================================

    def enqueue(self, request: SendNotification) -> NotificationQueueItem:
        """Store a validated request as a pending item; due now unless scheduled"""
        now = self.clock()
        item = NotificationQueueItem(
            user_id=request.user_id,
            user_email=request.user_email,
            user_name=request.user_name,
            user_phone=request.user_phone,
            title=request.title,
            body=request.body,
            type=request.type,
            channels=list(request.channels),
            payload=request.payload.model_dump(mode="json") if request.payload else None,
            appointment_id=request.appointment_id,
            status="pending",
            retry_count=0,
            max_retries=self.max_retries,
            scheduled_for=to_naive_utc(request.scheduled_for) if request.scheduled_for else now,
            created_at=now,
            updated_at=now,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)

        logger.info(f"📬 Queued {item.type} notification {item.id} for user {item.user_id}")
        return item

    def enqueue_batch(self, requests: Iterable[SendNotification]) -> list[NotificationQueueItem]:
        return [self.enqueue(request) for request in requests]

    def schedule(self, request: SendNotification, when: datetime) -> NotificationQueueItem:
        """
        Queue a notification for future delivery.

        Raises:
            ValueError: If `when` is not in the future
        """
        when = to_naive_utc(when)
        if when <= self.clock():
            raise ValueError("Scheduled time must be in the future")
        return self.enqueue(request.model_copy(update={"scheduled_for": when}))

    def get(self, notification_id: int) -> NotificationQueueItem:
        item = self.db.get(NotificationQueueItem, notification_id)
        if item is None:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        return item

    def cancel(self, notification_id: int) -> NotificationQueueItem:
        """
        Cancel a pending notification.

        Raises:
            NotificationNotFoundError: Unknown id
            NotificationStateError: The item is no longer pending; items in
                `processing` belong to the sweep and cannot be cancelled
        """
        item = self.get(notification_id)
        if not self._transition(item.id, ("pending",), status="cancelled"):
            self.db.refresh(item)
            raise NotificationStateError(f"Cannot cancel a notification that is {item.status}")

        self.db.refresh(item)
        logger.info(f"🚫 Notification {notification_id} cancelled")
        return item

    # ============================================
    # Sweep
    # ============================================

    def due_items(self, now: datetime) -> list[NotificationQueueItem]:
        return (
            self.db.query(NotificationQueueItem)
            .filter(
                NotificationQueueItem.status == "pending",
                NotificationQueueItem.scheduled_for <= now,
            )
            .order_by(NotificationQueueItem.scheduled_for, NotificationQueueItem.id)
            .limit(self.batch_size)
            .all()
        )

    async def process_pending(self) -> SweepResult:
        """
        Process one bounded page of due items, sequentially.

        Quiet hours push an item back by `quiet_hours_delay` without using a
        retry. An item whose channels are all disabled by the user's
        preferences is cancelled. Failed deliveries are retried after
        retry_count * retry_backoff until max_retries is reached.
        """
        now = self.clock()
        result = SweepResult()
        items = self.due_items(now)

        if not items:
            logger.debug("📭 No pending notifications due")
            return result

        logger.info(f"🔄 Processing {len(items)} pending notifications")

        for item in items:
            result.processed += 1
            try:
                outcome = await self._process_item(item, now)
            except SQLAlchemyError as e:
                self.db.rollback()
                result.errors += 1
                logger.error(f"❌ Database error while processing notification {item.id}: {e}")
                continue
            setattr(result, outcome, getattr(result, outcome) + 1)

        logger.info(
            f"✅ Sweep complete: {result.sent} sent, {result.retried} retried, "
            f"{result.failed} failed, {result.deferred} deferred, {result.cancelled} cancelled"
        )
        return result

    async def _process_item(self, item: NotificationQueueItem, now: datetime) -> str:
        preferences = load_preferences(self.db, item.user_id)

        if is_quiet_time(preferences.quiet_hours, now):
            deferred_to = now + self.quiet_hours_delay
            if not self._transition(item.id, ("pending",), scheduled_for=deferred_to):
                return "skipped"
            logger.debug(f"🌙 Notification {item.id} deferred to {deferred_to} (quiet hours)")
            return "deferred"

        allowed = resolve_channels(preferences, item.type)
        channels = [channel for channel in item.channels if channel in allowed]

        if not channels:
            if not self._transition(
                item.id, ("pending",), status="cancelled", error_message="No enabled channels"
            ):
                return "skipped"
            logger.info(f"🚫 Notification {item.id} cancelled: user disabled all its channels")
            return "cancelled"

        if not self._transition(item.id, ("pending",), status="processing"):
            logger.debug(f"Notification {item.id} claimed by another sweep")
            return "skipped"

        outcome = await self._dispatch(item, channels)

        if outcome.success:
            self._transition(item.id, ("processing",), status="sent", sent_at=now, error_message=None)
            return "sent"

        return self._record_failure(item, outcome.error_message, now)

    async def _dispatch(self, item: NotificationQueueItem, channels: list[str]) -> DispatchResult:
        try:
            return await self.dispatcher.dispatch(item, channels)
        except Exception as e:
            # A failed delivery-log write leaves the session unusable for the status update
            self.db.rollback()
            logger.error(f"❌ Dispatch of notification {item.id} raised: {e}")
            outcome = DispatchResult()
            outcome.results.append(ChannelResult(channel=channels[0], success=False, error=str(e)))
            return outcome

    def _record_failure(self, item: NotificationQueueItem, error: Optional[str], now: datetime) -> str:
        retry_count = item.retry_count + 1

        if retry_count >= item.max_retries:
            self._transition(
                item.id,
                ("processing",),
                status="failed",
                retry_count=retry_count,
                failed_at=now,
                error_message=error,
            )
            logger.error(f"❌ Notification {item.id} failed permanently after {retry_count} attempts: {error}")
            return "failed"

        retry_at = now + self.retry_backoff * retry_count
        self._transition(
            item.id,
            ("processing",),
            status="pending",
            retry_count=retry_count,
            scheduled_for=retry_at,
            error_message=error,
        )
        logger.warning(f"⚠️ Notification {item.id} attempt {retry_count} failed, retrying at {retry_at}: {error}")
        return "retried"

    def _transition(self, notification_id: int, from_statuses: tuple[str, ...], **values) -> bool:
        """Atomic conditional update; True if this caller made the change"""
        values.setdefault("updated_at", self.clock())
        updated = (
            self.db.query(NotificationQueueItem)
            .filter(
                NotificationQueueItem.id == notification_id,
                NotificationQueueItem.status.in_(from_statuses),
            )
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        return updated == 1

    # ============================================
    # Admin batches
    # ============================================

    def create_batch(self, notification_ids: list[int]) -> NotificationBatch:
        batch = NotificationBatch(
            items=list(notification_ids),
            status="pending",
            total_items=len(notification_ids),
            sent_items=0,
            failed_items=0,
            created_at=self.clock(),
        )
        self.db.add(batch)
        self.db.commit()
        self.db.refresh(batch)
        return batch

    async def process_batch(self, batch_id: int) -> NotificationBatch:
        """
        Send every item of a batch now, ignoring schedule and quiet hours.
        Items already sent count as sent; there are no retries.
        """
        batch = self.db.get(NotificationBatch, batch_id)
        if batch is None:
            raise NotificationNotFoundError(f"Batch {batch_id} not found")

        batch.status = "processing"
        batch.started_at = self.clock()
        self.db.commit()

        sent = 0
        failed = 0
        for notification_id in batch.items:
            item = self.db.get(NotificationQueueItem, notification_id)
            if item is None:
                failed += 1
                continue
            if item.status == "sent":
                sent += 1
                continue

            preferences = load_preferences(self.db, item.user_id)
            allowed = resolve_channels(preferences, item.type)
            channels = [channel for channel in item.channels if channel in allowed]
            if not channels or not self._transition(item.id, ("pending", "failed"), status="processing"):
                failed += 1
                continue

            outcome = await self._dispatch(item, channels)
            now = self.clock()
            if outcome.success:
                self._transition(item.id, ("processing",), status="sent", sent_at=now, error_message=None)
                sent += 1
            else:
                self._transition(
                    item.id,
                    ("processing",),
                    status="failed",
                    failed_at=now,
                    error_message=outcome.error_message,
                )
                failed += 1

        batch.status = "completed"
        batch.sent_items = sent
        batch.failed_items = failed
        batch.completed_at = self.clock()
        self.db.commit()
        self.db.refresh(batch)

        logger.info(f"📦 Batch {batch_id} completed: {sent} sent, {failed} failed")
        return batch

    # ============================================
    # Monitoring
    # ============================================

    def get_stats(self) -> QueueStats:
        counts = dict(
            self.db.query(NotificationQueueItem.status, func.count(NotificationQueueItem.id))
            .group_by(NotificationQueueItem.status)
            .all()
        )
        return QueueStats(**{status: counts.get(status, 0) for status in NOTIFICATION_STATUSES})

    def find_stuck_processing(self, older_than: timedelta = timedelta(minutes=30)) -> list[NotificationQueueItem]:
        """Items left in `processing` longer than `older_than`. Reported only, never reclaimed."""
        cutoff = self.clock() - older_than
        stuck = (
            self.db.query(NotificationQueueItem)
            .filter(
                NotificationQueueItem.status == "processing",
                NotificationQueueItem.updated_at < cutoff,
            )
            .all()
        )
        if stuck:
            logger.warning(f"⚠️ {len(stuck)} notifications stuck in processing since before {cutoff}")
        return stuck


def build_notification_queue(db: Session) -> NotificationQueue:
    """Queue wired to the production channel senders"""
    from ..email_service import ResendEmailSender
    from .push_service import FirebasePushSender
    from .twilio_service import TwilioSmsSender

    dispatcher = NotificationDispatcher(
        email_sender=ResendEmailSender(),
        sms_sender=TwilioSmsSender(),
        push_sender=FirebasePushSender(db),
        db=db,
    )
    return NotificationQueue(db, dispatcher)
