"""
Twilio SMS Service
Sends notification text messages to Indian mobile numbers
"""

import logging
from typing import Optional

import httpx

from ..config import (
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_FROM_NUMBER,
    TWILIO_MESSAGING_SERVICE_SID,
)
from ..security_utils import mask_sensitive_data
from ..shared.validators import is_valid_for_sms, normalize_indian_phone

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
# Longer bodies are split into several billed segments
SMS_MAX_LENGTH = 320


def build_sms_body(title: str, body: str) -> str:
    text = f"{title}: {body}" if title else body
    if len(text) > SMS_MAX_LENGTH:
        text = text[: SMS_MAX_LENGTH - 3].rstrip() + "..."
    return text


class TwilioSmsSender:
    def __init__(
        self,
        account_sid: Optional[str] = TWILIO_ACCOUNT_SID,
        auth_token: Optional[str] = TWILIO_AUTH_TOKEN,
        from_number: Optional[str] = TWILIO_FROM_NUMBER,
        messaging_service_sid: Optional[str] = TWILIO_MESSAGING_SERVICE_SID,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.client = client

    async def send(self, item) -> tuple[bool, Optional[str]]:
        return await self.send_sms(item.user_phone, build_sms_body(item.title, item.body), item.type)

    async def send_sms(
        self, to_phone: Optional[str], message_body: str, message_type: str
    ) -> tuple[bool, Optional[str]]:
        """
        Send SMS via Twilio

        Args:
            to_phone: Recipient mobile number, any accepted Indian format
            message_body: SMS message content
            message_type: Notification type, for logging

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        if not to_phone:
            logger.debug("No phone number provided")
            return False, "No phone number provided"

        # Only mobiles can receive SMS; landlines are valid numbers but rejected here
        if not is_valid_for_sms(to_phone):
            logger.warning(f"Phone number cannot receive SMS: {mask_sensitive_data(to_phone)}")
            return False, "Phone number is not a valid mobile number"

        if not self.account_sid or not self.auth_token:
            logger.debug("Twilio not configured")
            return False, "SMS service not configured"

        data = {
            "To": normalize_indian_phone(to_phone),
            "Body": message_body,
        }
        if self.messaging_service_sid:
            data["MessagingServiceSid"] = self.messaging_service_sid
        else:
            data["From"] = self.from_number

        masked = mask_sensitive_data(data["To"])
        try:
            logger.info(f"🚀 Sending {message_type} SMS to Twilio API for {masked}")
            response = await self._post(
                f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json", data
            )
            logger.info(f"📡 Twilio API response status: {response.status_code}")

            if response.status_code in [200, 201]:
                message_sid = response.json().get("sid")
                logger.info(f"✅ SMS sent successfully: {message_type} to {masked} (SID: {message_sid})")
                return True, None

            error_data = response.json()
            error_message = error_data.get("message", "Unknown error")
            error_code = error_data.get("code")
            logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
            return False, f"[{error_code}] {error_message}" if error_code else error_message

        except httpx.HTTPError as e:
            logger.error(f"Twilio API error: {str(e)}")
            return False, str(e)
        except ValueError as e:
            # Non-JSON error body
            logger.error(f"Unexpected Twilio response: {str(e)}")
            return False, "Unexpected response from SMS provider"

    async def _post(self, url: str, data: dict) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(url, auth=(self.account_sid, self.auth_token), data=data, timeout=10.0)
        async with httpx.AsyncClient() as client:
            return await client.post(url, auth=(self.account_sid, self.auth_token), data=data, timeout=10.0)
