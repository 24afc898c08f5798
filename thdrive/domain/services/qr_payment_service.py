"""
QR Payment Service - single-use QR payment codes

A rider issues a code for one ride and one amount; the driver scans it and
the fare moves from the rider's wallet to the driver's earnings, minus the
platform commission. Consuming the code and recording the payment commit
together, so a code settles at most once.
"""
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from thdrive.db.models.qr_code import QRCode
from thdrive.db.models.ride import Ride, PaymentMethod, PaymentStatus
from thdrive.db.models.platform_commission import CommissionSource
from thdrive.db.models.notification import NotificationType
from thdrive.db.models.transaction import TransactionType, TransactionStatus
from thdrive.core.config import settings
from thdrive.core.exceptions import (
    AppException,
    InsufficientBalanceError,
    InvalidAmountError,
    QRCodeAlreadyUsedError,
    QRCodeExpiredError,
    QRCodeNotFoundError,
    RideNotFoundError,
    SettlementError,
    ValidationException,
)
from thdrive.core.logging import get_logger
from thdrive.core.validation import AmountValidator, to_money
from thdrive.domain.pricing import split_fare
from thdrive.domain.services.commission_service import CommissionService
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope
from thdrive.domain.services.notification_service import NotificationService
from thdrive.domain.services.wallet_service import WalletService

logger = get_logger(__name__)


@dataclass(frozen=True)
class QRSettlement:
    success: bool
    amount: Decimal
    commission: Decimal
    driver_earnings: Decimal
    transaction_id: int


class QRPaymentService:
    """Issues and settles rider QR payment codes"""

    def __init__(self, db: AsyncSession, cache: DashboardCache | None = None):
        self.db = db
        self.cache = cache or DashboardCache()
        self.wallet_service = WalletService(db, cache=self.cache)
        self.commission_service = CommissionService(db, cache=self.cache)
        self.notification_service = NotificationService(db)

    @staticmethod
    def generate_code(ride_id: int) -> str:
        return f"{settings.QR_CODE_PREFIX}-{ride_id}-{int(time.time() * 1000)}"

    async def _get_ride(self, ride_id: int) -> Ride:
        result = await self.db.execute(
            select(Ride)
            .where(Ride.id == ride_id)
            .execution_options(populate_existing=True)
        )
        ride = result.scalar_one_or_none()
        if ride is None:
            raise RideNotFoundError(ride_id)
        return ride

    async def issue_qr_code(self, rider_id: int, ride_id: int, amount: Any) -> QRCode:
        """Store a fresh payment code for the rider's ride, valid for QR_CODE_TTL_SECONDS"""
        is_valid, error = AmountValidator.validate(amount, min_value=Decimal("0.01"))
        if not is_valid:
            raise InvalidAmountError(amount, error)

        await self.wallet_service.get_profile(rider_id)
        ride = await self._get_ride(ride_id)
        if ride.user_id != rider_id:
            raise ValidationException(
                f"Ride {ride_id} does not belong to user {rider_id}",
                field="ride_id",
            )

        now = datetime.utcnow()
        qr_code = QRCode(
            code=self.generate_code(ride_id),
            user_id=rider_id,
            ride_id=ride_id,
            amount=to_money(amount),
            is_used=False,
            expires_at=now + timedelta(seconds=settings.QR_CODE_TTL_SECONDS),
            created_at=now,
        )
        self.db.add(qr_code)
        await self.db.commit()

        logger.info(
            "QR payment code issued",
            extra_data={
                "rider_id": rider_id,
                "ride_id": ride_id,
                "amount": qr_code.amount,
                "expires_at": qr_code.expires_at,
            }
        )
        return qr_code

    async def lookup_qr_code(self, code: str) -> QRCode:
        result = await self.db.execute(
            select(QRCode)
            .where(QRCode.code == code)
            .execution_options(populate_existing=True)
        )
        qr_code = result.scalar_one_or_none()
        if qr_code is None:
            raise QRCodeNotFoundError(code)
        return qr_code

    async def consume_qr_code(self, code: str, driver_id: int) -> QRCode:
        """
        Flip the code from unused to used in one conditional UPDATE.

        When nothing matched, explain why: unknown code, expired (whether or
        not it was used), or already used. Does not commit.
        """
        now = datetime.utcnow()
        result = await self.db.execute(
            update(QRCode)
            .where(
                QRCode.code == code,
                QRCode.is_used.is_(False),
                QRCode.expires_at > now,
            )
            .values(is_used=True, scanned_by=driver_id, used_at=now)
            .returning(QRCode.id)
            .execution_options(synchronize_session=False)
        )
        consumed_id = result.scalar_one_or_none()

        qr_code = await self.lookup_qr_code(code)
        if consumed_id is not None:
            return qr_code

        if qr_code.expires_at <= now:
            raise QRCodeExpiredError(code, qr_code.expires_at)
        raise QRCodeAlreadyUsedError(code, qr_code.scanned_by)

    async def process_qr_payment(self, code: str, driver_id: int) -> QRSettlement:
        """
        Settle a scanned QR code.

        Steps, all in one database transaction:
        1. Consume the code
        2. Debit the rider's wallet by the code amount
        3. Record the ride payment transaction
        4. Credit the driver's earnings and the platform commission
        5. Mark the ride paid and notify the driver

        Raises:
            QRCodeNotFoundError / QRCodeExpiredError / QRCodeAlreadyUsedError
            InsufficientBalanceError: the rider's wallet cannot cover the amount
            RideNotFoundError / ProfileNotFoundError / DriverDetailsNotFoundError
            SettlementError: unexpected failure, everything rolled back
        """
        rider_id = None
        try:
            qr_code = await self.consume_qr_code(code, driver_id)
            rider_id = qr_code.user_id
            split = split_fare(qr_code.amount)
            scanned_at = qr_code.used_at

            await self.wallet_service.get_profile(driver_id)
            await self.commission_service.driver_service.get_driver_details(driver_id)

            if settings.QR_ALLOW_NEGATIVE_RIDER_BALANCE:
                await self.wallet_service.adjust_balance(rider_id, -split.amount)
            else:
                rider = await self.wallet_service.get_profile(rider_id)
                new_balance = await self.wallet_service.debit_if_sufficient(rider_id, split.amount)
                if new_balance is None:
                    raise InsufficientBalanceError(rider_id, rider.wallet_balance, split.amount)

            transaction = await self.wallet_service.append_transaction(
                TransactionType.RIDE_PAYMENT,
                split.amount,
                PaymentMethod.QR_CODE.value,
                user_id=rider_id,
                driver_id=driver_id,
                ride_id=qr_code.ride_id,
                commission=split.commission,
                driver_earnings=split.driver_earnings,
                status=TransactionStatus.COMPLETED,
                from_wallet=True,
                qr_code_id=qr_code.id,
                qr_scanned_at=scanned_at,
            )

            await self.commission_service.increment_driver_earnings(driver_id, split.driver_earnings)
            await self.commission_service.record_platform_commission(
                split.commission,
                CommissionSource.QR_PAYMENT,
                transaction_id=transaction.id,
                ride_id=qr_code.ride_id,
                driver_id=driver_id,
            )

            ride = await self._get_ride(qr_code.ride_id)
            ride.payment_method = PaymentMethod.QR_CODE
            ride.payment_status = PaymentStatus.COMPLETED
            if ride.driver_id is None:
                ride.driver_id = driver_id

            await self.notification_service.post_notification(
                user_id=driver_id,
                title="Payment received",
                message=(
                    f"${split.driver_earnings:.2f} added to your earnings "
                    f"(${split.amount:.2f} fare, ${split.commission:.2f} commission)."
                ),
                type=NotificationType.INFO,
                related_type="ride",
                related_id=qr_code.ride_id,
                metadata={"transaction_id": transaction.id},
            )

            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(
                "QR payment rolled back",
                extra_data={"driver_id": driver_id, "rider_id": rider_id},
                exc_info=True,
            )
            raise SettlementError("QR payment", e) from e

        logger.info(
            "QR payment settled",
            extra_data={
                "transaction_id": transaction.id,
                "ride_id": qr_code.ride_id,
                "rider_id": rider_id,
                "driver_id": driver_id,
                "amount": split.amount,
                "commission": split.commission,
                "driver_earnings": split.driver_earnings,
            }
        )
        await self.cache.invalidate(DashboardScope.DRIVER, driver_id)
        await self.cache.invalidate(DashboardScope.WALLET, rider_id, driver_id)

        return QRSettlement(
            success=True,
            amount=split.amount,
            commission=split.commission,
            driver_earnings=split.driver_earnings,
            transaction_id=transaction.id,
        )
