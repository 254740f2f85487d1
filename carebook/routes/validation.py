"""
Server-side validation endpoints.

Form layers call these to re-check input with the same validators and
schemas the API applies to its own payloads.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel

from ..domain.accounts.compliance import AccountDeletionRequest, DataExportRequest
from ..domain.accounts.schemas import Login, PasswordReset, ProfileUpdate, UserRegistration
from ..domain.appointments.schemas import (
    AppointmentBooking,
    AppointmentSearch,
    AppointmentStatusUpdate,
    PatientSearch,
    WaitlistEntry,
)
from ..domain.notifications.schemas import SendNotification
from ..domain.payments.schemas import PaymentData, ReceiptGeneration, RefundRequest, ServicePayment
from ..domain.reviews.schemas import ReviewModeration, ReviewSubmission
from ..domain.uploads.schemas import FileUpload, PdfUpload
from ..security_utils import flag_suspicious_input
from ..shared.address import validate_address, validate_pin_code
from ..shared.fields import email_schema, name_schema, password_schema, phone_schema, pin_code_schema
from ..shared.names import validate_name
from ..shared.schema_utils import SchemaResult, validate_input
from ..shared.validators import ValidationResult, validate_indian_phone

router = APIRouter(prefix="/validation", tags=["Validation"])

SCHEMAS = {
    "user-registration": UserRegistration,
    "login": Login,
    "password-reset": PasswordReset,
    "profile-update": ProfileUpdate,
    "appointment-booking": AppointmentBooking,
    "appointment-status-update": AppointmentStatusUpdate,
    "appointment-search": AppointmentSearch,
    "patient-search": PatientSearch,
    "waitlist-entry": WaitlistEntry,
    "review-submission": ReviewSubmission,
    "review-moderation": ReviewModeration,
    "payment-data": PaymentData,
    "refund-request": RefundRequest,
    "service-payment": ServicePayment,
    "receipt-generation": ReceiptGeneration,
    "file-upload": FileUpload,
    "pdf-upload": PdfUpload,
    "send-notification": SendNotification,
    "data-export-request": DataExportRequest,
    "account-deletion-request": AccountDeletionRequest,
    "name": name_schema,
    "phone": phone_schema,
    "email": email_schema,
    "password": password_schema,
    "pin-code": pin_code_schema,
}


class PhoneCheck(BaseModel):
    phone: Optional[Any] = None


class PinCodeCheck(BaseModel):
    pin_code: Optional[str] = None
    region: Optional[str] = None


class AddressCheck(BaseModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    landmark: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    pin_code: Optional[str] = None
    country: Optional[str] = "India"


class NameCheck(BaseModel):
    title: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_name: Optional[str] = None


@router.post("/phone", response_model=ValidationResult)
async def check_phone(data: PhoneCheck):
    return validate_indian_phone(data.phone)


@router.post("/pin-code", response_model=ValidationResult)
async def check_pin_code(data: PinCodeCheck):
    return validate_pin_code(data.pin_code, data.region)


@router.post("/address", response_model=ValidationResult)
async def check_address(data: AddressCheck):
    return validate_address(data.model_dump())


@router.post("/name", response_model=ValidationResult)
async def check_name(data: NameCheck):
    return validate_name(data.model_dump())


@router.get("/schemas")
async def list_schemas():
    return {"schemas": sorted(SCHEMAS)}


@router.post("/schemas/{schema_name}", response_model=SchemaResult)
async def check_schema(schema_name: str, payload: Any = Body(None)):
    """Validate a payload against a named contract and return the envelope"""
    schema = SCHEMAS.get(schema_name)
    if schema is None:
        raise HTTPException(status_code=404, detail=f"Unknown schema: {schema_name}")

    if isinstance(payload, dict):
        for field, value in payload.items():
            flag_suspicious_input(f"{schema_name}.{field}", value)

    result = validate_input(schema, payload)
    if result.success and isinstance(result.data, BaseModel):
        return SchemaResult(success=True, data=result.data.model_dump(mode="json"))
    return result
