"""Tests for domain schemas and the validation envelope."""
import pytest

from carebook.domain.accounts.compliance import AccountDeletionRequest, DataExportRequest
from carebook.domain.accounts.schemas import Login, ProfileUpdate, UserRegistration
from carebook.domain.appointments.schemas import (
    AppointmentBooking,
    AppointmentSearch,
    AppointmentStatusUpdate,
    WaitlistEntry,
)
from carebook.domain.notifications.schemas import (
    NotificationPreferencesUpdate,
    QuietHours,
    SendNotification,
)
from carebook.domain.payments.schemas import PaymentData, RefundRequest, ServicePayment
from carebook.domain.reviews.schemas import ReviewSubmission
from carebook.domain.uploads.schemas import FileUpload, PdfUpload
from carebook.shared.fields import name_schema, phone_schema, pin_code_schema
from carebook.shared.schema_utils import validate_input


@pytest.fixture
def registration_data():
    return {
        "email": "Asha.Rao@Example.com",
        "password": "Secure123",
        "confirm_password": "Secure123",
        "full_name": "Asha Rao",
        "phone": "98765 43210",
        "consent": {"privacy_policy": True, "terms_of_service": True},
    }


@pytest.fixture
def booking_data():
    return {
        "service_id": "svc-1",
        "service_name": "General Consultation",
        "provider_id": "dr-1",
        "provider_name": "Dr. Meera Iyer",
        "appointment_date": "2025-02-01",
        "start_time": "10:00",
        "end_time": "10:30",
        "patient_name": "Rahul Verma",
        "patient_email": "rahul@example.com",
        "notes": "<b>First</b> visit",
    }


@pytest.mark.unit
class TestValidationEnvelope:
    """Test validate_input results."""

    def test_success_carries_data(self, registration_data):
        result = validate_input(UserRegistration, registration_data)

        assert result.success is True
        assert result.errors is None
        assert result.data.email == "asha.rao@example.com"
        assert result.data.phone == "+919876543210"

    def test_failure_maps_paths_to_messages(self, registration_data):
        registration_data["consent"]["privacy_policy"] = False
        registration_data["phone"] = "12345"

        result = validate_input(UserRegistration, registration_data)

        assert result.success is False
        assert result.data is None
        assert result.errors == {
            "phone": "Phone number must be at least 10 digits",
            "consent.privacy_policy": "You must accept the privacy policy",
        }

    def test_password_mismatch_is_reported_on_confirmation(self, registration_data):
        registration_data["confirm_password"] = "Different123"

        result = validate_input(UserRegistration, registration_data)

        assert result.errors == {"confirm_password": "Passwords do not match"}

    def test_password_match_waits_for_valid_fields(self, registration_data):
        registration_data["email"] = "not-an-email"
        registration_data["confirm_password"] = "Different123"

        result = validate_input(UserRegistration, registration_data)

        assert result.errors == {"email": "Please enter a valid email address"}

    def test_password_without_uppercase(self, registration_data):
        registration_data["password"] = "password"
        registration_data["confirm_password"] = "password"

        result = validate_input(UserRegistration, registration_data)

        assert result.errors == {"password": "Password must contain at least one uppercase letter"}

    def test_first_password_rule_is_reported(self, registration_data):
        registration_data["password"] = "short"
        registration_data["confirm_password"] = "short"

        result = validate_input(UserRegistration, registration_data)

        assert result.errors == {"password": "Password must be at least 8 characters"}

    def test_name_schema(self):
        assert validate_input(name_schema, " O'Brien ").data == "O'Brien"
        assert validate_input(name_schema, "John123").errors == {
            "": "Name can only contain letters, spaces, hyphens, and apostrophes"
        }

    def test_type_adapters(self):
        assert validate_input(phone_schema, "9876543210").data == "+919876543210"
        assert validate_input(name_schema, "A").errors == {"": "Name must be at least 2 characters"}
        assert validate_input(pin_code_schema, "012345").errors == {"": "Invalid PIN code"}

    def test_login_password_minimum(self):
        result = validate_input(Login, {"email": "a@b.co", "password": "12345"})

        assert result.errors == {"password": "Password must be at least 6 characters"}


@pytest.mark.unit
class TestAccountSchemas:
    """Test profile and data-rights schemas."""

    def test_avatar_url(self):
        assert ProfileUpdate(avatar_url="https://cdn.example.com/a.png").avatar_url == "https://cdn.example.com/a.png"
        assert ProfileUpdate(avatar_url="").avatar_url == ""

        result = validate_input(ProfileUpdate, {"avatar_url": "javascript:alert(1)"})
        assert result.errors == {"avatar_url": "Invalid avatar URL"}

    def test_deletion_emails_must_match(self):
        result = validate_input(
            AccountDeletionRequest,
            {"user_id": "u1", "email": "a@example.com", "confirm_email": "b@example.com"},
        )

        assert result.errors == {"confirm_email": "Email addresses do not match"}

    def test_deletion_email_match_waits_for_valid_fields(self):
        result = validate_input(
            AccountDeletionRequest,
            {"user_id": "", "email": "a@example.com", "confirm_email": "b@example.com"},
        )

        assert result.errors == {"user_id": "User ID is required"}

    def test_export_reason_is_sanitized(self):
        request = DataExportRequest(user_id="u1", email="a@example.com", request_reason="<i>Moving</i> clinics")

        assert request.request_reason == "Moving clinics"


@pytest.mark.unit
class TestAppointmentSchemas:
    """Test booking and search schemas."""

    def test_booking_sanitizes_notes(self, booking_data):
        booking = AppointmentBooking(**booking_data)

        assert booking.notes == "First visit"
        assert booking.provider_name == "Dr. Meera Iyer"

    def test_end_time_after_start(self, booking_data):
        booking_data["end_time"] = "09:30"

        result = validate_input(AppointmentBooking, booking_data)

        assert result.errors == {"end_time": "End time must be after start time"}

    def test_invalid_time_format(self, booking_data):
        booking_data["start_time"] = "25:00"
        booking_data["end_time"] = "09:00"

        result = validate_input(AppointmentBooking, booking_data)

        assert result.errors == {"start_time": "Invalid time format"}

    def test_notes_too_long(self, booking_data):
        booking_data["notes"] = "x" * 501

        result = validate_input(AppointmentBooking, booking_data)

        assert result.errors == {"notes": "Notes cannot exceed 500 characters"}

    def test_required_field_messages(self, booking_data):
        booking_data["service_id"] = "  "

        assert validate_input(AppointmentBooking, booking_data).errors == {"service_id": "Service is required"}

    def test_status_update(self):
        update = AppointmentStatusUpdate(appointment_id="a1", status="confirmed", admin_notes="<b>OK</b><script>x</script>")

        assert update.admin_notes.startswith("<b>OK</b>")

    def test_search_paging_defaults_and_bounds(self):
        search = AppointmentSearch()
        assert (search.page, search.limit) == (1, 20)

        result = validate_input(AppointmentSearch, {"page": 0, "limit": 101})
        assert set(result.errors) == {"page", "limit"}

    def test_waitlist_requires_ids(self):
        result = validate_input(
            WaitlistEntry,
            {"user_id": "u1", "provider_id": "", "service_id": "s1", "preferred_date": "2025-02-01"},
        )

        assert result.errors == {"provider_id": "Provider ID is required"}


@pytest.mark.unit
class TestPaymentReviewUploadSchemas:
    """Test payment, review and upload schemas."""

    def test_amount_must_be_positive(self):
        result = validate_input(PaymentData, {"appointment_id": "a1", "amount": 0})

        assert result.errors == {"amount": "Amount must be positive"}

    def test_refund_reason_length(self):
        result = validate_input(RefundRequest, {"appointment_id": "a1", "amount": 100, "reason": "<b>short</b>"})

        assert result.errors == {"reason": "Reason must be at least 10 characters"}

    def test_service_payment_method(self):
        result = validate_input(ServicePayment, {"appointment_id": "a1", "amount": 500, "payment_method": "cheque"})

        assert set(result.errors) == {"payment_method"}

    @pytest.mark.parametrize(
        "rating, message",
        [
            (0, "Rating must be at least 1"),
            (6, "Rating cannot exceed 5"),
            (4.5, "Rating must be a whole number"),
            ("5", "Rating must be a whole number"),
        ],
    )
    def test_review_rating(self, rating, message):
        result = validate_input(
            ReviewSubmission,
            {"provider_id": "p1", "appointment_id": "a1", "rating": rating, "comment": "Very helpful doctor"},
        )

        assert result.errors == {"rating": message}

    def test_review_comment_is_sanitized(self):
        review = ReviewSubmission(
            provider_id="p1", appointment_id="a1", rating=5, comment="<script>x</script>Very helpful doctor"
        )

        assert "<script" not in review.comment
        assert review.comment.endswith("Very helpful doctor")

    def test_upload_filename_and_size(self):
        upload = FileUpload(filename="../report.pdf", mime_type="application/pdf", size=1024)
        assert upload.filename == "report.pdf"

        result = validate_input(FileUpload, {"filename": "a.pdf", "mime_type": "application/pdf", "size": 11 * 1024 * 1024})
        assert result.errors == {"size": "File size cannot exceed 10MB"}

    def test_pdf_only(self):
        result = validate_input(PdfUpload, {"filename": "a.png", "mime_type": "image/png", "size": 10})

        assert result.errors == {"mime_type": "Only PDF files are allowed"}


@pytest.mark.unit
class TestNotificationSchemas:
    """Test notification requests and preference updates."""

    def test_send_notification_cleans_and_dedupes(self):
        request = SendNotification(
            user_id="u1",
            type="general",
            title="<b>Clinic</b> update",
            body="Closed on Monday",
            channels=["email", "push", "email"],
            payload={"kind": "general", "data": {"ward": "A"}},
        )

        assert request.title == "Clinic update"
        assert request.channels == ["email", "push"]
        assert request.payload.kind == "general"

    def test_channels_required(self):
        result = validate_input(
            SendNotification, {"user_id": "u1", "type": "general", "title": "T", "body": "B", "channels": []}
        )

        assert result.errors == {"channels": "At least one channel is required"}

    def test_title_empty_after_sanitizing(self):
        result = validate_input(
            SendNotification,
            {"user_id": "u1", "type": "general", "title": "<b></b>", "body": "B", "channels": ["push"]},
        )

        assert result.errors == {"title": "Title is required"}

    def test_payload_discriminator(self):
        request = SendNotification(
            user_id="u1",
            type="payment_success",
            title="Paid",
            body="Thanks",
            channels=["email"],
            payload={"kind": "payment", "amount": 500},
        )

        assert request.payload.currency == "INR"

    def test_quiet_hours_validation(self):
        assert validate_input(QuietHours, {"timezone": "Mars/Olympus"}).errors == {"timezone": "Unknown timezone"}
        assert validate_input(QuietHours, {"start": "7pm"}).errors == {"start": "Invalid time format"}

    def test_preferences_update_rejects_unknown_fields(self):
        result = validate_input(NotificationPreferencesUpdate, {"fax": {"enabled": True}})

        assert result.success is False
        assert "fax" in result.errors
