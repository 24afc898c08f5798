"""
Commission Service - platform commission ledger and cash-ride commission settlement

Cash rides pay the driver directly, so the platform's 5% is collected
afterwards: from the driver's wallet when it covers the commission, otherwise
recorded as a pending penalty the driver has 24 hours to clear.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, update

from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.platform_commission import PlatformCommission, CommissionSource
from thdrive.db.models.notification import NotificationType
from thdrive.db.models.ride import PaymentMethod
from thdrive.db.models.transaction import TransactionType
from thdrive.core.config import settings
from thdrive.core.exceptions import (
    AppException,
    DriverDetailsNotFoundError,
    InvalidAmountError,
    SettlementError,
)
from thdrive.core.logging import get_logger, log_async_operation
from thdrive.core.validation import AmountValidator, to_money
from thdrive.domain.pricing import split_fare
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope
from thdrive.domain.services.driver_service import DriverService
from thdrive.domain.services.notification_service import NotificationService
from thdrive.domain.services.wallet_service import WalletService

logger = get_logger(__name__)


class CommissionOutcome(str, enum.Enum):
    PAID = "paid"
    DEFERRED = "deferred"


@dataclass(frozen=True)
class CommissionSettlement:
    outcome: CommissionOutcome
    commission: Decimal
    deadline: Optional[datetime] = None


class CommissionService:
    """Platform commission accrual and the cash-ride settlement flow"""

    def __init__(self, db: AsyncSession, cache: DashboardCache | None = None):
        self.db = db
        self.cache = cache or DashboardCache()
        self.wallet_service = WalletService(db, cache=self.cache)
        self.driver_service = DriverService(db, cache=self.cache)
        self.notification_service = NotificationService(db)

    async def record_platform_commission(
        self,
        amount: Any,
        source: CommissionSource,
        transaction_id: Optional[int] = None,
        ride_id: Optional[int] = None,
        driver_id: Optional[int] = None,
    ) -> PlatformCommission:
        """Append one commission entry. Does not commit."""
        entry = PlatformCommission(
            amount=to_money(amount),
            source=CommissionSource(source),
            transaction_id=transaction_id,
            ride_id=ride_id,
            driver_id=driver_id,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def get_platform_commission_total(self) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(PlatformCommission.amount), 0))
        )
        return to_money(result.scalar_one())

    async def increment_driver_earnings(self, driver_id: int, amount: Any) -> Decimal:
        """
        Credit withdrawable and lifetime earnings in one UPDATE.

        Returns the new earnings balance. Does not commit.
        """
        credit = to_money(amount)
        result = await self.db.execute(
            update(DriverDetails)
            .where(DriverDetails.user_id == driver_id)
            .values(
                earnings_balance=DriverDetails.earnings_balance + credit,
                total_earnings=DriverDetails.total_earnings + credit,
            )
            .returning(DriverDetails.earnings_balance)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise DriverDetailsNotFoundError(driver_id)
        return new_balance

    async def _defer_as_penalty(
        self,
        driver_id: int,
        commission: Decimal,
        deadline: datetime
    ) -> None:
        # Accumulate in SQL; a concurrent deferral must not be lost
        result = await self.db.execute(
            update(DriverDetails)
            .where(DriverDetails.user_id == driver_id)
            .values(
                pending_penalties=DriverDetails.pending_penalties + commission,
                penalty_deadline=deadline,
                penalty_notified_at=None,
            )
            .returning(DriverDetails.pending_penalties)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            raise DriverDetailsNotFoundError(driver_id)

    @log_async_operation("cash commission settlement")
    async def settle_cash_commission(
        self,
        driver_id: int,
        ride_id: int,
        amount: Any
    ) -> CommissionSettlement:
        """
        Collect the platform commission for a completed cash ride.

        Debits the driver's wallet when it covers the commission (the check and
        the debit are one statement), otherwise adds the commission to the
        driver's pending penalties with a fresh deadline. Either branch
        commits as one unit together with its notification.

        Raises:
            InvalidAmountError: amount rejected by AmountValidator
            ProfileNotFoundError / DriverDetailsNotFoundError: driver records missing
            SettlementError: unexpected failure, everything rolled back
        """
        is_valid, error = AmountValidator.validate(amount)
        if not is_valid:
            raise InvalidAmountError(amount, error)
        commission = split_fare(amount).commission

        # Both rows must exist before any money moves
        await self.wallet_service.get_profile(driver_id)
        await self.driver_service.get_driver_details(driver_id)

        try:
            new_balance = await self.wallet_service.debit_if_sufficient(driver_id, commission)

            if new_balance is not None:
                await self.record_platform_commission(
                    commission,
                    CommissionSource.CASH_RIDE,
                    ride_id=ride_id,
                    driver_id=driver_id,
                )
                await self.wallet_service.append_transaction(
                    TransactionType.CASH_COMMISSION,
                    commission,
                    PaymentMethod.CASH.value,
                    user_id=driver_id,
                    driver_id=driver_id,
                    ride_id=ride_id,
                    commission=commission,
                    from_wallet=True,
                )
                await self.notification_service.post_notification(
                    user_id=driver_id,
                    title="Commission Paid",
                    message=f"${commission:.2f} commission deducted from your wallet for cash ride.",
                    type=NotificationType.INFO,
                    related_type="ride",
                    related_id=ride_id,
                )
                settlement = CommissionSettlement(CommissionOutcome.PAID, commission)
            else:
                deadline = datetime.utcnow() + timedelta(hours=settings.PENALTY_GRACE_HOURS)
                await self._defer_as_penalty(driver_id, commission, deadline)
                await self.notification_service.post_notification(
                    user_id=driver_id,
                    title="Commission Due",
                    message=(
                        f"Pay ${commission:.2f} commission within "
                        f"{settings.PENALTY_GRACE_HOURS} hours or risk account suspension."
                    ),
                    type=NotificationType.WARNING,
                    related_type="ride",
                    related_id=ride_id,
                    metadata={"deadline": deadline.isoformat()},
                )
                settlement = CommissionSettlement(CommissionOutcome.DEFERRED, commission, deadline)

            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(
                "Cash commission settlement rolled back",
                extra_data={"driver_id": driver_id, "ride_id": ride_id, "commission": commission},
                exc_info=True,
            )
            raise SettlementError("cash commission settlement", e) from e

        logger.info(
            "Cash commission settled",
            extra_data={
                "driver_id": driver_id,
                "ride_id": ride_id,
                "commission": commission,
                "outcome": settlement.outcome.value,
                "wallet_balance": new_balance,
            }
        )
        await self.cache.invalidate(DashboardScope.DRIVER, driver_id)
        await self.cache.invalidate(DashboardScope.WALLET, driver_id)
        return settlement
