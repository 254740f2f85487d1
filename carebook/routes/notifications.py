"""
Notification API routes
Queue submission, cancellation, user preferences and the cron-triggered sweep
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..domain.notifications.schemas import (
    NotificationItemResponse,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    QueueStats,
    SendNotification,
)
from ..security_utils import log_security_event
from ..services.errors import NotificationNotFoundError, NotificationStateError
from ..services.notification_preferences import load_preferences, save_preferences
from ..services.notification_queue import NotificationQueue, SweepResult, build_notification_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class BatchCreate(BaseModel):
    notification_ids: list[int]


class BatchResponse(BaseModel):
    id: int
    status: str
    total_items: int
    sent_items: int
    failed_items: int

    class Config:
        from_attributes = True


class ProcessQueueResponse(BaseModel):
    success: bool
    processed_count: int
    result: SweepResult
    stats: QueueStats


def get_notification_queue(db: Session = Depends(get_db)) -> NotificationQueue:
    return build_notification_queue(db)


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    """Only the scheduler holding CRON_SECRET may trigger a sweep"""
    expected = config.CRON_SECRET
    provided = ""
    if authorization and authorization.startswith("Bearer "):
        provided = authorization[len("Bearer "):]

    if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
        log_security_event("unauthorized_cron_request", details={"has_header": bool(authorization)})
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/send", response_model=NotificationItemResponse, status_code=201)
async def send_notification(
    data: SendNotification,
    queue: NotificationQueue = Depends(get_notification_queue),
):
    """Queue a notification; it is delivered by the next sweep"""
    return queue.enqueue(data)


@router.post("/schedule", response_model=NotificationItemResponse, status_code=201)
async def schedule_notification(
    data: SendNotification,
    queue: NotificationQueue = Depends(get_notification_queue),
):
    if data.scheduled_for is None:
        raise HTTPException(status_code=422, detail={"scheduled_for": "Scheduled time is required"})
    try:
        return queue.schedule(data, data.scheduled_for)
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"scheduled_for": str(e)})


@router.delete("/{notification_id}", response_model=NotificationItemResponse)
async def cancel_notification(
    notification_id: int,
    queue: NotificationQueue = Depends(get_notification_queue),
):
    try:
        return queue.cancel(notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotificationStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/preferences/{user_id}", response_model=NotificationPreferences)
async def get_preferences(user_id: str, db: Session = Depends(get_db)):
    return load_preferences(db, user_id)


@router.put("/preferences/{user_id}", response_model=NotificationPreferences)
async def update_preferences(
    user_id: str,
    data: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
):
    preferences = save_preferences(db, user_id, data)
    logger.info(f"🔔 Updated notification preferences for user {user_id}")
    return preferences


@router.post("/batches", response_model=BatchResponse, status_code=201)
async def create_batch(
    data: BatchCreate,
    queue: NotificationQueue = Depends(get_notification_queue),
):
    if not data.notification_ids:
        raise HTTPException(status_code=422, detail={"notification_ids": "At least one notification is required"})
    return queue.create_batch(data.notification_ids)


@router.post("/batches/{batch_id}/process", response_model=BatchResponse)
async def process_batch(
    batch_id: int,
    queue: NotificationQueue = Depends(get_notification_queue),
):
    try:
        return await queue.process_batch(batch_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/process-queue",
    response_model=ProcessQueueResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def process_queue(queue: NotificationQueue = Depends(get_notification_queue)):
    """Run one sweep; called by an external scheduler when the arq worker is not deployed"""
    result = await queue.process_pending()
    return ProcessQueueResponse(
        success=True,
        processed_count=result.sent,
        result=result,
        stats=queue.get_stats(),
    )


@router.get("/queue-stats", response_model=QueueStats)
async def queue_stats(queue: NotificationQueue = Depends(get_notification_queue)):
    return queue.get_stats()
