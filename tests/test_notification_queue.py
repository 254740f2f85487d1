"""Tests for the persisted notification queue and its sweep."""
from datetime import datetime, timedelta, timezone

import pytest

from carebook.domain.notifications.schemas import NotificationPreferencesUpdate
from carebook.models_notification import NotificationDeliveryLog, NotificationQueueItem
from carebook.services.errors import NotificationNotFoundError, NotificationStateError
from carebook.services.notification_preferences import save_preferences


@pytest.mark.unit
class TestEnqueue:
    """Test queue producers and cancellation."""

    def test_enqueue_is_due_now(self, queue, make_request, clock):
        item = queue.enqueue(make_request(payload={"kind": "general", "data": {"room": "3"}}))

        assert item.id is not None
        assert item.status == "pending"
        assert item.retry_count == 0
        assert item.max_retries == 3
        assert item.scheduled_for == clock.now
        assert item.channels == ["email"]
        assert item.payload == {"kind": "general", "data": {"room": "3"}}

    def test_enqueue_batch(self, queue, make_request):
        items = queue.enqueue_batch([make_request(user_id="a"), make_request(user_id="b")])

        assert [item.user_id for item in items] == ["a", "b"]

    def test_schedule_in_future(self, queue, make_request, clock):
        when = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

        item = queue.schedule(make_request(), when)

        assert item.scheduled_for == datetime(2025, 1, 15, 12, 0)

    def test_schedule_in_past_is_rejected(self, queue, make_request, clock):
        with pytest.raises(ValueError, match="Scheduled time must be in the future"):
            queue.schedule(make_request(), clock.now)

    def test_cancel_pending(self, queue, make_request):
        item = queue.enqueue(make_request())

        cancelled = queue.cancel(item.id)

        assert cancelled.status == "cancelled"

    def test_cancel_twice_is_rejected(self, queue, make_request):
        item = queue.enqueue(make_request())
        queue.cancel(item.id)

        with pytest.raises(NotificationStateError, match="cancelled"):
            queue.cancel(item.id)

    def test_cancel_unknown(self, queue):
        with pytest.raises(NotificationNotFoundError, match="Notification 999 not found"):
            queue.cancel(999)


@pytest.mark.unit
@pytest.mark.asyncio
class TestSweep:
    """Test processing of due items."""

    async def test_due_item_is_sent(self, queue, make_request, senders, db_session, clock):
        item = queue.enqueue(make_request())

        result = await queue.process_pending()

        assert result.processed == 1
        assert result.sent == 1
        assert senders["email"].sent == [item.id]
        stored = queue.get(item.id)
        assert stored.status == "sent"
        assert stored.sent_at == clock.now
        logs = db_session.query(NotificationDeliveryLog).all()
        assert [(log.channel, log.status) for log in logs] == [("email", "sent")]

    async def test_future_item_is_not_due(self, queue, make_request, senders, clock):
        queue.schedule(make_request(), clock.now + timedelta(hours=1))

        result = await queue.process_pending()

        assert result.processed == 0
        assert senders["email"].sent == []

    async def test_failures_back_off_then_fail(self, queue, make_request, senders, clock):
        senders["email"].default = (False, "mailbox unavailable")
        item = queue.enqueue(make_request())
        start = clock.now

        first = await queue.process_pending()
        stored = queue.get(item.id)
        assert first.retried == 1
        assert stored.status == "pending"
        assert stored.retry_count == 1
        assert stored.scheduled_for == start + timedelta(minutes=15)
        assert stored.error_message == "email: mailbox unavailable"

        # Not due yet
        assert (await queue.process_pending()).processed == 0

        clock.advance(timedelta(minutes=15))
        await queue.process_pending()
        stored = queue.get(item.id)
        assert stored.retry_count == 2
        assert stored.scheduled_for == clock.now + timedelta(minutes=30)

        clock.advance(timedelta(minutes=30))
        last = await queue.process_pending()
        stored = queue.get(item.id)
        assert last.failed == 1
        assert stored.status == "failed"
        assert stored.retry_count == 3
        assert stored.failed_at == clock.now
        assert len(senders["email"].sent) == 3

    async def test_sender_exception_counts_as_failure(self, queue, make_request, senders):
        senders["email"].outcomes = [RuntimeError("connection reset")]
        item = queue.enqueue(make_request())

        result = await queue.process_pending()

        assert result.retried == 1
        assert "connection reset" in queue.get(item.id).error_message

    async def test_one_successful_channel_is_enough(self, queue, make_request, senders):
        senders["email"].default = (False, "bounced")
        item = queue.enqueue(make_request(channels=["email", "push"]))

        result = await queue.process_pending()

        assert result.sent == 1
        assert senders["push"].sent == [item.id]
        assert queue.get(item.id).status == "sent"

    async def test_quiet_hours_defer_without_retry(self, queue, make_request, senders, db_session, clock):
        # Clock is 11:30 IST
        save_preferences(
            db_session,
            "user-1",
            NotificationPreferencesUpdate(quiet_hours={"enabled": True, "start": "11:00", "end": "12:00"}),
        )
        item = queue.enqueue(make_request())

        result = await queue.process_pending()

        stored = queue.get(item.id)
        assert result.deferred == 1
        assert stored.status == "pending"
        assert stored.retry_count == 0
        assert stored.scheduled_for == clock.now + timedelta(minutes=60)
        assert senders["email"].sent == []

    async def test_no_enabled_channel_cancels(self, queue, make_request, senders):
        # SMS is off by default
        item = queue.enqueue(make_request(channels=["sms"], user_phone="9876543210"))

        result = await queue.process_pending()

        stored = queue.get(item.id)
        assert result.cancelled == 1
        assert stored.status == "cancelled"
        assert stored.error_message == "No enabled channels"
        assert senders["sms"].sent == []

    async def test_disabled_channel_is_skipped(self, queue, make_request, senders, db_session):
        save_preferences(db_session, "user-1", NotificationPreferencesUpdate(email={"enabled": False}))
        item = queue.enqueue(make_request(channels=["email", "push"]))

        await queue.process_pending()

        assert senders["email"].sent == []
        assert senders["push"].sent == [item.id]

    async def test_failed_delivery_log_write_still_schedules_retry(
        self, queue, make_request, dispatcher, db_session, monkeypatch
    ):
        def broken_log(item, result):
            # channel is NOT NULL
            db_session.add(NotificationDeliveryLog(notification_id=item.id, user_id=item.user_id, status="sent"))
            db_session.commit()

        monkeypatch.setattr(dispatcher, "_log_delivery", broken_log)
        item = queue.enqueue(make_request())

        result = await queue.process_pending()

        stored = queue.get(item.id)
        assert result.retried == 1
        assert result.errors == 0
        assert stored.status == "pending"
        assert stored.retry_count == 1
        assert "NOT NULL" in stored.error_message

    async def test_page_is_bounded(self, queue, make_request):
        for i in range(12):
            queue.enqueue(make_request(user_id=f"user-{i}"))

        result = await queue.process_pending()

        assert result.processed == 10
        assert queue.get_stats().pending == 2

    async def test_claimed_item_is_not_processed(self, queue, make_request, senders, db_session):
        item = queue.enqueue(make_request())
        db_session.query(NotificationQueueItem).filter_by(id=item.id).update({"status": "processing"})
        db_session.commit()

        result = await queue.process_pending()

        assert result.processed == 0
        assert senders["email"].sent == []

    async def test_transition_requires_expected_status(self, queue, make_request):
        item = queue.enqueue(make_request())

        assert queue._transition(item.id, ("pending",), status="processing") is True
        assert queue._transition(item.id, ("pending",), status="processing") is False


@pytest.mark.unit
@pytest.mark.asyncio
class TestBatchesAndMonitoring:
    """Test admin batches, stats and stuck item reporting."""

    async def test_process_batch(self, queue, make_request, senders):
        first = queue.enqueue(make_request(user_id="a"))
        second = queue.enqueue(make_request(user_id="b"))
        await queue.process_pending()
        third = queue.enqueue(make_request(user_id="c"))

        batch = queue.create_batch([first.id, second.id, third.id, 999])
        done = await queue.process_batch(batch.id)

        assert done.status == "completed"
        assert done.total_items == 4
        assert done.sent_items == 3
        assert done.failed_items == 1
        assert queue.get(third.id).status == "sent"

    async def test_process_unknown_batch(self, queue):
        with pytest.raises(NotificationNotFoundError):
            await queue.process_batch(42)

    async def test_stats(self, queue, make_request, senders):
        senders["email"].outcomes = [(True, None)]
        queue.enqueue(make_request())
        queue.cancel(queue.enqueue(make_request()).id)
        await queue.process_pending()
        queue.enqueue(make_request())

        stats = queue.get_stats()

        assert stats.sent == 1
        assert stats.cancelled == 1
        assert stats.pending == 1
        assert stats.failed == 0

    async def test_find_stuck_processing(self, queue, make_request, clock):
        item = queue.enqueue(make_request())
        queue._transition(item.id, ("pending",), status="processing")

        assert queue.find_stuck_processing() == []

        clock.advance(timedelta(minutes=31))
        stuck = queue.find_stuck_processing()

        assert [s.id for s in stuck] == [item.id]
        # Reported only
        assert queue.get(item.id).status == "processing"
