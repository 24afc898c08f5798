"""
Notification API Routes
"""
from datetime import datetime
from typing import Any, List
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from thdrive.db.database import get_db
from thdrive.db.models.notification import NotificationType
from thdrive.domain.services.notification_service import NotificationService

router = APIRouter()


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: NotificationType
    related_type: str | None
    related_id: int | None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    is_read: bool
    created_at: datetime | None

    class Config:
        from_attributes = True


@router.get(
    "/{user_id}",
    response_model=List[NotificationResponse],
    summary="List notifications, newest first",
)
async def list_notifications(
    user_id: int,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    service = NotificationService(db)
    return await service.list_notifications(user_id, unread_only=unread_only, limit=limit)


@router.post(
    "/{user_id}/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
)
async def mark_notification_read(
    user_id: int,
    notification_id: int,
    db: AsyncSession = Depends(get_db)
):
    service = NotificationService(db)
    return await service.mark_read(notification_id, user_id)
