"""Payment domain schemas"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.fields import bounded_text, positive_amount, required_text
from ...utils.sanitization import sanitize_appointment_notes, sanitize_text

AppointmentId = required_text("Appointment ID is required")
Amount = positive_amount("Amount must be positive")


class PaymentData(BaseModel):
    appointment_id: AppointmentId
    amount: Amount
    currency: Literal["INR"] = "INR"
    payment_method: Optional[Literal["razorpay", "stripe", "payu", "cash", "card", "upi"]] = None


class RefundRequest(BaseModel):
    """Schema for an admin-issued refund"""

    appointment_id: AppointmentId
    amount: positive_amount("Refund amount must be positive")
    reason: bounded_text(
        500,
        "Reason cannot exceed 500 characters",
        sanitize_text,
        min_length=10,
        too_short_message="Reason must be at least 10 characters",
    )
    admin_user_id: Optional[str] = None


class ServicePayment(BaseModel):
    """Schema for recording an in-clinic payment"""

    appointment_id: AppointmentId
    amount: Amount
    payment_method: Literal["cash", "card", "upi", "other"]
    transaction_id: Optional[str] = None
    notes: Optional[bounded_text(500, "Notes cannot exceed 500 characters", sanitize_appointment_notes)] = None

    @field_validator("transaction_id")
    @classmethod
    def validate_transaction_id(cls, v):
        if v is not None and len(v) > 100:
            raise ValueError("Transaction ID is too long")
        return v


class ReceiptGeneration(BaseModel):
    appointment_id: AppointmentId
    regenerate: bool = False
