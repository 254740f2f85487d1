"""
Firebase Cloud Messaging push notifications
Fans a queue item out to every active device token of the user
"""

import asyncio
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging
from sqlalchemy.orm import Session

from ..config import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID
from ..models_notification import DeviceToken
from ..utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

# FCM accepts at most 500 tokens per multicast
MULTICAST_LIMIT = 500


def initialize_firebase():
    """Initialize Firebase Admin SDK (only once)"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if FIREBASE_CREDENTIALS_PATH:
        cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
        logger.info("Firebase Admin initialized with service account")
    else:
        cred = credentials.ApplicationDefault()
        logger.info("Firebase Admin initialized with default credentials")
    return firebase_admin.initialize_app(cred, {"projectId": FIREBASE_PROJECT_ID})


def build_push_data(item) -> dict[str, str]:
    """FCM data payloads only carry strings"""
    data = {"type": item.type, "notification_id": str(item.id)}
    if item.appointment_id:
        data["appointment_id"] = str(item.appointment_id)
    payload = item.payload or {}
    for key, value in payload.items():
        if isinstance(value, (str, int, float, bool)):
            data[key] = str(value)
        elif key == "data" and isinstance(value, dict):
            data.update({k: str(v) for k, v in value.items()})
    return data


def _is_unregistered(exception) -> bool:
    return isinstance(exception, (messaging.UnregisteredError, messaging.SenderIdMismatchError))


class FirebasePushSender:
    def __init__(self, db: Session, app=None):
        self.db = db
        self.app = app

    def active_tokens(self, user_id: str) -> list[DeviceToken]:
        return (
            self.db.query(DeviceToken)
            .filter(DeviceToken.user_id == user_id, DeviceToken.is_active.is_(True))
            .all()
        )

    async def send(self, item) -> tuple[bool, Optional[str]]:
        devices = self.active_tokens(item.user_id)
        if not devices:
            logger.debug(f"No device tokens for user {item.user_id}")
            return False, "No device tokens"

        if self.app is None:
            self.app = initialize_firebase()

        success_count = 0
        last_error = None
        for start in range(0, len(devices), MULTICAST_LIMIT):
            chunk = devices[start : start + MULTICAST_LIMIT]
            message = messaging.MulticastMessage(
                tokens=[device.token for device in chunk],
                notification=messaging.Notification(title=item.title, body=item.body),
                data=build_push_data(item),
                android=messaging.AndroidConfig(priority="high"),
            )
            # The SDK call is blocking
            response = await asyncio.to_thread(messaging.send_each_for_multicast, message, app=self.app)
            success_count += response.success_count

            for device, result in zip(chunk, response.responses):
                if result.success:
                    device.last_used_at = utc_now()
                    continue
                last_error = str(result.exception)
                if _is_unregistered(result.exception):
                    device.is_active = False
                    logger.info(f"🔕 Deactivated unregistered device token for user {item.user_id}")

        self.db.commit()

        if success_count == 0:
            logger.warning(f"⚠️ Push failed on every device for user {item.user_id}: {last_error}")
            return False, last_error or "Push delivery failed"

        logger.info(f"📲 Push sent to {success_count}/{len(devices)} devices for user {item.user_id}")
        return True, None
