"""Tests for channel dispatch, event notifications and channel senders."""
from types import SimpleNamespace
from urllib.parse import parse_qs

import httpx
import pytest
from firebase_admin import messaging

from carebook.domain.notifications.schemas import AppointmentPayload, PaymentPayload
from carebook.email_service import ResendEmailSender
from carebook.email_templates import notification_email_template
from carebook.models_notification import DeviceToken
from carebook.services import push_service
from carebook.services.errors import DeliveryError
from carebook.services.notification_service import (
    NotificationDispatcher,
    Recipient,
    appointment_cancelled_notification,
    appointment_confirmed_notification,
    appointment_rescheduled_notification,
    payment_failed_notification,
    payment_success_notification,
)
from carebook.services.push_service import FirebasePushSender, build_push_data
from carebook.services.twilio_service import TwilioSmsSender, build_sms_body
from tests.conftest import FakeSender


def make_item(**overrides):
    data = {
        "id": 7,
        "user_id": "u1",
        "type": "appointment_reminder",
        "title": "Appointment Reminder",
        "body": "See you tomorrow at 10:00.",
        "user_email": "patient@example.com",
        "user_name": "Asha",
        "user_phone": "+919876543210",
        "appointment_id": "apt-1",
        "payload": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.fixture
def appointment():
    return AppointmentPayload(
        appointment_id="apt-1",
        service_name="Dental Checkup",
        provider_name="Dr. Meera Iyer",
        appointment_date="2025-01-22",
        appointment_time="11:00",
    )


@pytest.mark.unit
class TestDispatcher:
    """Test multi-channel dispatch."""

    @pytest.mark.asyncio
    async def test_channels_run_in_order(self):
        calls = []

        class Recording(FakeSender):
            def __init__(self, name):
                super().__init__()
                self.name = name

            async def send(self, item):
                calls.append(self.name)
                return True, None

        dispatcher = NotificationDispatcher(Recording("email"), Recording("sms"), Recording("push"))

        outcome = await dispatcher.dispatch(make_item(), ["sms", "email", "push", "email"])

        assert calls == ["push", "email", "sms"]
        assert outcome.success is True
        assert outcome.error_message is None

    @pytest.mark.asyncio
    async def test_missing_sender_and_exceptions_are_failures(self):
        dispatcher = NotificationDispatcher(email_sender=FakeSender(outcomes=[ValueError("smtp down")]))

        outcome = await dispatcher.dispatch(make_item(), ["email", "sms"])

        assert outcome.success is False
        assert outcome.error_message == "email: smtp down; sms: No sms sender configured"


@pytest.mark.unit
class TestEventNotifications:
    """Test request builders for appointment and payment events."""

    def test_confirmed(self, appointment):
        recipient = Recipient(user_id="u1", email="Asha@Example.com", name="Asha", phone="98765 43210")

        request = appointment_confirmed_notification(recipient, appointment)

        assert request.type == "appointment_confirmed"
        assert request.title == "Appointment Confirmed"
        assert "Dental Checkup with Dr. Meera Iyer on 2025-01-22 at 11:00" in request.body
        assert request.user_email == "asha@example.com"
        assert request.user_phone == "+919876543210"
        assert request.appointment_id == "apt-1"
        assert request.channels == ["email", "sms", "push"]

    def test_landline_is_dropped(self, appointment):
        recipient = Recipient(user_id="u1", phone="022-23456789")

        assert appointment_confirmed_notification(recipient, appointment).user_phone is None

    def test_cancelled_includes_sanitized_reason(self, appointment):
        appointment.reason = "<b>Doctor</b> unavailable"

        request = appointment_cancelled_notification(Recipient(user_id="u1"), appointment)

        assert request.body.endswith("Reason: Doctor unavailable")

    def test_rescheduled(self, appointment):
        appointment.previous_date = "2025-01-20"
        appointment.previous_time = "10:00"

        request = appointment_rescheduled_notification(Recipient(user_id="u1"), appointment)

        assert "rescheduled from 2025-01-20 at 10:00 to 2025-01-22 at 11:00" in request.body

    def test_payment_messages(self):
        payment = PaymentPayload(amount=150000, service_name="Surgery", reason="Card declined")

        success = payment_success_notification(Recipient(user_id="u1"), payment)
        failed = payment_failed_notification(Recipient(user_id="u1"), payment)

        assert success.body == "Your payment of ₹1,50,000 for Surgery was successful."
        assert "Reason: Card declined" in failed.body
        assert failed.body.endswith("Please try again.")


@pytest.mark.unit
class TestTwilioSender:
    """Test SMS delivery through the Twilio REST API."""

    def make_sender(self, handler, **overrides):
        settings = {
            "account_sid": "AC123",
            "auth_token": "token",
            "from_number": "+15550000000",
            "messaging_service_sid": None,
        }
        settings.update(overrides)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return TwilioSmsSender(client=client, **settings)

    @pytest.mark.asyncio
    async def test_sends_form_to_messages_api(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(201, json={"sid": "SM1"})

        success, error = await self.make_sender(handler).send(make_item(user_phone="98765 43210"))

        assert (success, error) == (True, None)
        assert seen["url"].endswith("/Accounts/AC123/Messages.json")
        assert seen["form"]["To"] == ["+919876543210"]
        assert seen["form"]["From"] == ["+15550000000"]
        assert seen["form"]["Body"] == ["Appointment Reminder: See you tomorrow at 10:00."]

    @pytest.mark.asyncio
    async def test_api_error_is_reported(self):
        def handler(request):
            return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

        success, error = await self.make_sender(handler).send(make_item())

        assert success is False
        assert error == "[21211] Invalid 'To' Phone Number"

    @pytest.mark.asyncio
    async def test_landline_and_unconfigured(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await self.make_sender(handler).send(make_item(user_phone="022-23456789")) == (
            False,
            "Phone number is not a valid mobile number",
        )
        assert await self.make_sender(handler, account_sid=None).send(make_item()) == (
            False,
            "SMS service not configured",
        )

    def test_long_body_is_truncated(self):
        body = build_sms_body("Title", "x" * 400)

        assert len(body) == 320
        assert body.endswith("...")


@pytest.mark.unit
class TestEmailSender:
    """Test the Resend e-mail channel."""

    @pytest.mark.asyncio
    async def test_missing_address(self):
        sender = ResendEmailSender(api_key="re_test")

        assert await sender.send(make_item(user_email=None)) == (False, "No email address")

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self):
        sender = ResendEmailSender(api_key=None)

        with pytest.raises(DeliveryError, match="Email service not configured"):
            await sender.send(make_item())

    def test_template_escapes_content(self):
        mjml = notification_email_template("Update", "<b>Note</b>", user_name="Asha", appointment_id="apt-1")

        assert "&lt;b&gt;Note&lt;/b&gt;" in mjml
        assert "Hi Asha," in mjml
        assert "/dashboard/appointments/apt-1" in mjml


@pytest.mark.unit
class TestPushSender:
    """Test FCM fan-out over device tokens."""

    def test_push_data_is_flat_strings(self):
        item = make_item(payload={"kind": "general", "data": {"room": 3, "urgent": True}})

        assert build_push_data(item) == {
            "type": "appointment_reminder",
            "notification_id": "7",
            "appointment_id": "apt-1",
            "kind": "general",
            "room": "3",
            "urgent": "True",
        }

    @pytest.mark.asyncio
    async def test_no_tokens(self, db_session):
        sender = FirebasePushSender(db_session, app=object())

        assert await sender.send(make_item()) == (False, "No device tokens")

    @pytest.mark.asyncio
    async def test_unregistered_tokens_are_deactivated(self, db_session, monkeypatch):
        db_session.add_all(
            [
                DeviceToken(user_id="u1", token="good-token", platform="android", is_active=True),
                DeviceToken(user_id="u1", token="stale-token", platform="ios", is_active=True),
            ]
        )
        db_session.commit()

        def fake_send(message, app=None):
            results = []
            for token in message.tokens:
                if token == "stale-token":
                    results.append(SimpleNamespace(success=False, exception=messaging.UnregisteredError("gone")))
                else:
                    results.append(SimpleNamespace(success=True, exception=None))
            return SimpleNamespace(success_count=1, responses=results)

        monkeypatch.setattr(push_service.messaging, "send_each_for_multicast", fake_send)

        success, error = await FirebasePushSender(db_session, app=object()).send(make_item())

        assert (success, error) == (True, None)
        tokens = {t.token: t.is_active for t in db_session.query(DeviceToken).all()}
        assert tokens == {"good-token": True, "stale-token": False}
