"""
Withdrawal Service - driver payout requests

The requested amount leaves earnings_balance when the request is recorded;
the payout itself is processed out of band and tracked on the withdrawal row.
"""
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.transaction import TransactionType, TransactionStatus
from thdrive.db.models.withdrawal import Withdrawal, WithdrawalMethod, WithdrawalStatus
from thdrive.db.models.notification import NotificationType
from thdrive.core.config import settings
from thdrive.core.exceptions import (
    AppException,
    InsufficientBalanceError,
    InvalidAmountError,
    SettlementError,
    ValidationException,
)
from thdrive.core.logging import get_logger
from thdrive.core.validation import AmountValidator, EmailValidator, to_money
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope
from thdrive.domain.services.driver_service import DriverService
from thdrive.domain.services.notification_service import NotificationService
from thdrive.domain.services.wallet_service import WalletService

logger = get_logger(__name__)


class WithdrawalService:
    def __init__(self, db: AsyncSession, cache: DashboardCache | None = None):
        self.db = db
        self.cache = cache or DashboardCache()
        self.wallet_service = WalletService(db, cache=self.cache)
        self.driver_service = DriverService(db, cache=self.cache)
        self.notification_service = NotificationService(db)

    async def request_withdrawal(
        self,
        driver_id: int,
        amount: Any,
        method: str,
        paypal_email: Optional[str] = None,
    ) -> Withdrawal:
        """
        Debit the driver's earnings and record a pending withdrawal.

        Raises:
            ValidationException: unknown method or missing/invalid PayPal e-mail
            InvalidAmountError: below MIN_WITHDRAWAL_AMOUNT
            InsufficientBalanceError: earnings balance cannot cover the amount
        """
        try:
            payout_method = WithdrawalMethod(method)
        except ValueError:
            raise ValidationException(f"Unsupported withdrawal method: {method}", field="method")

        if payout_method == WithdrawalMethod.PAYPAL and not EmailValidator.validate(paypal_email):
            raise ValidationException("A valid PayPal e-mail is required", field="paypal_email")

        is_valid, error = AmountValidator.validate(amount, min_value=settings.MIN_WITHDRAWAL_AMOUNT)
        if not is_valid:
            raise InvalidAmountError(amount, error)
        debit = to_money(amount)

        details = await self.driver_service.get_driver_details(driver_id)

        try:
            result = await self.db.execute(
                update(DriverDetails)
                .where(
                    DriverDetails.user_id == driver_id,
                    DriverDetails.earnings_balance >= debit,
                )
                .values(earnings_balance=DriverDetails.earnings_balance - debit)
                .returning(DriverDetails.earnings_balance)
                .execution_options(synchronize_session=False)
            )
            new_balance = result.scalar_one_or_none()
            if new_balance is None:
                raise InsufficientBalanceError(
                    driver_id, details.earnings_balance, debit, balance_name="earnings_balance"
                )

            transaction = await self.wallet_service.append_transaction(
                TransactionType.WITHDRAWAL,
                debit,
                payout_method.value,
                driver_id=driver_id,
                status=TransactionStatus.PENDING,
            )
            withdrawal = Withdrawal(
                driver_id=driver_id,
                amount=debit,
                method=payout_method,
                paypal_email=paypal_email.strip() if paypal_email else None,
                status=WithdrawalStatus.PENDING,
                transaction_id=transaction.id,
            )
            self.db.add(withdrawal)
            await self.db.flush()

            await self.notification_service.post_notification(
                user_id=driver_id,
                title="Withdrawal requested",
                message=f"Your withdrawal of ${debit:.2f} is being processed.",
                type=NotificationType.INFO,
                related_type="withdrawal",
                related_id=withdrawal.id,
            )
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(
                "Withdrawal request rolled back",
                extra_data={"driver_id": driver_id, "amount": debit},
                exc_info=True,
            )
            raise SettlementError("withdrawal request", e) from e

        logger.info(
            "Withdrawal requested",
            extra_data={
                "driver_id": driver_id,
                "withdrawal_id": withdrawal.id,
                "amount": debit,
                "method": payout_method.value,
                "paypal_email": EmailValidator.mask(paypal_email) if paypal_email else None,
                "earnings_balance": new_balance,
            }
        )
        await self.cache.invalidate(DashboardScope.DRIVER, driver_id)
        return withdrawal

    async def list_withdrawals(self, driver_id: int, limit: int = 20) -> List[Withdrawal]:
        result = await self.db.execute(
            select(Withdrawal)
            .where(Withdrawal.driver_id == driver_id)
            .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
