"""
Driver Service - driver earnings records and the driver dashboard
"""
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.transaction import Transaction
from thdrive.core.exceptions import DriverDetailsNotFoundError, ShapeMismatchError
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope
from thdrive.domain.services.wallet_service import WalletService


class DriverService:
    def __init__(self, db: AsyncSession, cache: DashboardCache | None = None):
        self.db = db
        self.cache = cache or DashboardCache()

    async def get_driver_details(self, driver_id: int) -> DriverDetails:
        """Driver details by profile id; DriverDetailsNotFoundError if the row is missing"""
        result = await self.db.execute(
            select(DriverDetails)
            .where(DriverDetails.user_id == driver_id)
            .execution_options(populate_existing=True)
        )
        details = result.scalar_one_or_none()
        if details is None:
            raise DriverDetailsNotFoundError(driver_id)
        if details.pending_penalties is None:
            raise ShapeMismatchError("Driver details", "pending_penalties", driver_id)
        return details

    async def get_driver_dashboard(self, driver_id: int) -> dict[str, Any]:
        """
        Earnings, wallet, penalty state and recent ride payments.

        Served from the dashboard cache; settlements touching this driver
        invalidate the entry after they commit.
        """
        cached = await self.cache.get(DashboardScope.DRIVER, driver_id)
        if cached is not None:
            return cached

        wallet_service = WalletService(self.db, cache=self.cache)
        profile = await wallet_service.get_profile(driver_id)
        details = await self.get_driver_details(driver_id)

        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.driver_id == driver_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(10)
        )
        recent = result.scalars().all()

        dashboard = {
            "driver_id": driver_id,
            "wallet_balance": str(profile.wallet_balance),
            "earnings_balance": str(details.earnings_balance),
            "total_earnings": str(details.total_earnings),
            "pending_penalties": str(details.pending_penalties),
            "penalty_deadline": (
                details.penalty_deadline.isoformat() if details.penalty_deadline else None
            ),
            "is_verified": bool(details.is_verified),
            "recent_transactions": [
                {
                    "id": t.id,
                    "transaction_type": t.transaction_type.value,
                    "ride_id": t.ride_id,
                    "amount": str(t.amount),
                    "commission": str(t.commission),
                    "driver_earnings": str(t.driver_earnings),
                    "payment_method": t.payment_method,
                    "created_at": t.created_at.isoformat() if t.created_at else None,
                }
                for t in recent
            ],
        }
        await self.cache.set(DashboardScope.DRIVER, driver_id, dashboard)
        return dashboard
