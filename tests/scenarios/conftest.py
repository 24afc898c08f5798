"""
Fixtures and DB assertions for end-to-end settlement scenarios.
"""
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from thdrive.db.models.profile import Profile
from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.platform_commission import PlatformCommission
from thdrive.db.models.notification import Notification


@pytest.fixture
def ledger(db_session):
    """Fresh reads of every balance a settlement can move"""

    class _Ledger:
        async def wallet(self, user_id: int) -> Decimal:
            result = await db_session.execute(
                select(Profile.wallet_balance).where(Profile.id == user_id)
            )
            return result.scalar_one()

        async def driver(self, driver_id: int) -> DriverDetails:
            result = await db_session.execute(
                select(DriverDetails)
                .where(DriverDetails.user_id == driver_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one()

        async def platform_total(self) -> Decimal:
            result = await db_session.execute(
                select(func.coalesce(func.sum(PlatformCommission.amount), 0))
            )
            return Decimal(str(result.scalar_one())).quantize(Decimal("0.01"))

        async def notifications(self, user_id: int) -> list[Notification]:
            result = await db_session.execute(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.id)
            )
            return list(result.scalars().all())

    return _Ledger()
