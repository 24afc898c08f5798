"""
Overdue penalty sweep (Celery beat task body).
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.notification import Notification, NotificationType
from thdrive.workers.celery_app import celery_app
from thdrive.workers.tasks import _sweep_overdue_penalties


async def _alerts(db_session, user_id: int) -> list[Notification]:
    result = await db_session.execute(
        select(Notification).where(
            Notification.user_id == user_id,
            Notification.type == NotificationType.ALERT,
        )
    )
    return list(result.scalars().all())


@pytest.mark.unit
async def test_overdue_driver_alerted_once(driver_factory, db_session):
    now = datetime.utcnow()
    overdue = await driver_factory(
        pending_penalties="5.00", penalty_deadline=now - timedelta(hours=1)
    )
    overdue_id = overdue.id

    assert await _sweep_overdue_penalties(db_session, now) == {"notified": 1}
    assert await _sweep_overdue_penalties(db_session, now + timedelta(hours=1)) == {"notified": 0}

    [alert] = await _alerts(db_session, overdue_id)
    assert alert.title == "Commission Overdue"
    assert "$5.00" in alert.message
    assert alert.meta["pending_penalties"] == "5.00"

    details = (
        await db_session.execute(
            select(DriverDetails)
            .where(DriverDetails.user_id == overdue_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert details.penalty_notified_at == now


@pytest.mark.unit
async def test_drivers_within_deadline_or_without_penalty_skipped(driver_factory, db_session):
    now = datetime.utcnow()
    not_due = await driver_factory(
        pending_penalties="5.00", penalty_deadline=now + timedelta(hours=2)
    )
    cleared = await driver_factory(
        pending_penalties="0.00", penalty_deadline=now - timedelta(hours=2)
    )

    assert await _sweep_overdue_penalties(db_session, now) == {"notified": 0}
    assert await _alerts(db_session, not_due.id) == []
    assert await _alerts(db_session, cleared.id) == []


@pytest.mark.unit
async def test_new_deferral_rearms_the_alert(driver_factory, db_session):
    from thdrive.domain.services.commission_service import CommissionService

    now = datetime.utcnow()
    driver = await driver_factory(
        pending_penalties="5.00", penalty_deadline=now - timedelta(hours=1)
    )
    driver_id = driver.id
    await _sweep_overdue_penalties(db_session, now)

    await CommissionService(db_session).settle_cash_commission(driver_id, 2, 100)
    later = datetime.utcnow() + timedelta(hours=25)

    assert await _sweep_overdue_penalties(db_session, later) == {"notified": 1}
    assert len(await _alerts(db_session, driver_id)) == 2


@pytest.mark.unit
def test_sweep_is_on_the_beat_schedule():
    entry = celery_app.conf.beat_schedule["sweep-overdue-penalties"]
    assert entry["task"] == "thdrive.workers.tasks.sweep_overdue_penalties"
    assert entry["schedule"] == 3600.0
