"""Data protection requests - export and deletion of a patient's data"""

from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.fields import Email, required_text
from ...shared.schema_utils import cross_field_error
from ...utils.sanitization import sanitize_text

UserId = required_text("User ID is required")

REASON_MAX_LENGTH = 500


def _reason(v):
    if v is None:
        return v
    if len(v) > REASON_MAX_LENGTH:
        raise ValueError("Reason is too long")
    return sanitize_text(v)


class DataExportRequest(BaseModel):
    user_id: UserId
    email: Email
    request_reason: Optional[str] = None

    @field_validator("request_reason")
    @classmethod
    def validate_reason(cls, v):
        return _reason(v)


class AccountDeletionRequest(BaseModel):
    user_id: UserId
    email: Email
    confirm_email: Email
    reason: Optional[str] = None

    @model_validator(mode="after")
    def emails_match(self):
        if self.confirm_email != self.email:
            raise cross_field_error("confirm_email", "Email addresses do not match")
        return self

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        return _reason(v)
