"""
Notification Service - per-account inbox
"""
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from thdrive.db.models.notification import Notification, NotificationType
from thdrive.core.exceptions import NotFoundException, ValidationException


class NotificationService:
    """Append-only notification sink plus the read side of the inbox"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def post_notification(
        self,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        related_type: Optional[str] = None,
        related_id: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Notification:
        """
        Queue a notification in the current transaction.

        Does not commit: settlements post notifications as part of their own
        unit of work so a rolled-back settlement leaves no message behind.
        """
        if not title or not message:
            raise ValidationException("Notification title and message are required")

        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=NotificationType(type),
            related_type=related_type,
            related_id=related_id,
            meta=metadata or {},
            is_read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def list_notifications(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        """Newest first"""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, notification_id: int, user_id: int) -> Notification:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundException("Notification", notification_id)
        await self.db.commit()

        notification = await self.db.get(Notification, notification_id, populate_existing=True)
        return notification
