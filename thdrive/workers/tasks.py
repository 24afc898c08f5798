"""
Celery Tasks

Periodic follow-up on deferred cash-ride commissions: drivers who let the
penalty deadline pass get one overdue alert per deadline.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import select, update

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

from thdrive.workers.celery_app import celery_app
from thdrive.db.database import get_task_session
from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.notification import NotificationType
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope
from thdrive.domain.services.notification_service import NotificationService
from thdrive.core.logging import get_logger, set_correlation_id

logger = get_logger(__name__)


@contextmanager
def get_event_loop():
    """
    Context manager for proper event loop handling in Celery tasks.
    Creates a new event loop and ensures proper cleanup to prevent resource leaks.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        try:
            # The Redis singleton is bound to this loop; drop it before closing
            from thdrive.core.redis_client import close_redis
            loop.run_until_complete(close_redis())
        except Exception as e:
            logger.warning(
                "Failed to close Redis at task end",
                extra_data={"error": str(e)},
            )
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()


def run_async(coro):
    """Helper to run async code in sync Celery task with proper cleanup"""
    set_correlation_id()

    with get_event_loop() as loop:
        return loop.run_until_complete(coro)


async def _sweep_overdue_penalties(db: AsyncSession, now: datetime | None = None) -> dict:
    """Alert every driver whose pending penalty deadline has passed, once per deadline"""
    now = now or datetime.utcnow()
    result = await db.execute(
        select(DriverDetails).where(
            DriverDetails.pending_penalties > 0,
            DriverDetails.penalty_deadline < now,
            DriverDetails.penalty_notified_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    overdue = result.scalars().all()

    notification_service = NotificationService(db)
    notified: list[int] = []
    for details in overdue:
        # Stamp first; a concurrent sweep that lost the race skips the driver
        stamped = await db.execute(
            update(DriverDetails)
            .where(
                DriverDetails.id == details.id,
                DriverDetails.penalty_notified_at.is_(None),
            )
            .values(penalty_notified_at=now)
            .execution_options(synchronize_session=False)
        )
        if stamped.rowcount == 0:
            continue

        await notification_service.post_notification(
            user_id=details.user_id,
            title="Commission Overdue",
            message=(
                f"Your pending commission of ${details.pending_penalties:.2f} is overdue. "
                "Pay it now to avoid account suspension."
            ),
            type=NotificationType.ALERT,
            related_type="commission",
            metadata={
                "pending_penalties": str(details.pending_penalties),
                "deadline": details.penalty_deadline.isoformat(),
            },
        )
        notified.append(details.user_id)

    await db.commit()

    if notified:
        await DashboardCache().invalidate(DashboardScope.DRIVER, *notified)
        logger.warning(
            "Overdue commission alerts sent",
            extra_data={"drivers": notified, "count": len(notified)}
        )
    return {"notified": len(notified)}


@celery_app.task(name="thdrive.workers.tasks.sweep_overdue_penalties")
def sweep_overdue_penalties():
    """Periodic task: overdue commission alerts"""

    async def _sweep():
        async with get_task_session() as db:
            return await _sweep_overdue_penalties(db)

    return run_async(_sweep())
