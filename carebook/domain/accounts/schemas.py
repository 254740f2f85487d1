"""Account domain schemas - registration, login and profile payloads"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...security_utils import sanitize_url
from ...shared.fields import Email, IndianPhone, LoginPassword, Password, PersonName, required_text
from ...shared.schema_utils import cross_field_error

UserId = required_text("User ID is required")


class RegistrationConsent(BaseModel):
    privacy_policy: bool
    terms_of_service: bool

    @field_validator("privacy_policy")
    @classmethod
    def require_privacy_policy(cls, v):
        if v is not True:
            raise ValueError("You must accept the privacy policy")
        return v

    @field_validator("terms_of_service")
    @classmethod
    def require_terms(cls, v):
        if v is not True:
            raise ValueError("You must accept the terms of service")
        return v


class UserRegistration(BaseModel):
    """Schema for patient sign-up"""

    email: Email
    password: Password
    confirm_password: str
    full_name: PersonName
    phone: Optional[IndianPhone] = None
    date_of_birth: Optional[str] = None
    consent: RegistrationConsent

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.password:
            raise cross_field_error("confirm_password", "Passwords do not match")
        return self


class Login(BaseModel):
    email: Email
    password: LoginPassword


class PasswordReset(BaseModel):
    email: Email


class NotificationToggles(BaseModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None
    push: Optional[bool] = None


class ProfilePreferences(BaseModel):
    language: Optional[Literal["en", "hi"]] = None
    notifications: Optional[NotificationToggles] = None


class ProfileUpdate(BaseModel):
    """Schema for updating a profile; every field is optional"""

    full_name: Optional[PersonName] = None
    phone: Optional[IndianPhone] = None
    date_of_birth: Optional[str] = None
    avatar_url: Optional[str] = None
    preferences: Optional[ProfilePreferences] = None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v):
        # "" clears the avatar
        if v is None or v == "":
            return v
        safe = sanitize_url(v)
        if not safe:
            raise ValueError("Invalid avatar URL")
        return safe
