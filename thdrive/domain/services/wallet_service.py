"""
Wallet Service - rider/driver wallet balances and the transaction ledger

Balances only move through single-statement signed deltas, so two requests
touching the same wallet can never overwrite each other's update.
"""
from decimal import Decimal
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from thdrive.db.models.profile import Profile
from thdrive.db.models.transaction import Transaction, TransactionType, TransactionStatus
from thdrive.db.models.ride import PaymentMethod
from thdrive.core.config import settings
from thdrive.core.exceptions import (
    InvalidAmountError,
    ProfileNotFoundError,
    ShapeMismatchError,
    ValidationException,
)
from thdrive.core.logging import get_logger
from thdrive.core.validation import AmountValidator, to_money
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope
from thdrive.domain.services.payment_gateway import BasePaymentGateway, get_payment_gateway

logger = get_logger(__name__)


class WalletService:
    """Service for wallet balances and transaction records"""

    def __init__(
        self,
        db: AsyncSession,
        cache: DashboardCache | None = None,
        gateway: BasePaymentGateway | None = None,
    ):
        self.db = db
        self.cache = cache or DashboardCache()
        self._gateway = gateway

    @property
    def gateway(self) -> BasePaymentGateway:
        if self._gateway is None:
            self._gateway = get_payment_gateway()
        return self._gateway

    async def get_profile(self, user_id: int) -> Profile:
        """Load a profile with fresh column values or raise ProfileNotFoundError"""
        result = await self.db.execute(
            select(Profile)
            .where(Profile.id == user_id)
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            raise ProfileNotFoundError(user_id)
        if profile.wallet_balance is None:
            raise ShapeMismatchError("Profile", "wallet_balance", user_id)
        return profile

    async def get_balance(self, user_id: int) -> Decimal:
        profile = await self.get_profile(user_id)
        return profile.wallet_balance

    async def adjust_balance(self, user_id: int, signed_amount: Any) -> Decimal:
        """
        Add ``signed_amount`` (negative to debit) to the wallet in one UPDATE.

        Returns the new balance. Does not commit.
        """
        delta = to_money(signed_amount)
        result = await self.db.execute(
            update(Profile)
            .where(Profile.id == user_id)
            .values(wallet_balance=Profile.wallet_balance + delta)
            .returning(Profile.wallet_balance)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise ProfileNotFoundError(user_id)
        return new_balance

    async def debit_if_sufficient(self, user_id: int, amount: Any) -> Optional[Decimal]:
        """
        Debit ``amount`` only if the wallet covers it, as one conditional UPDATE.

        Returns the new balance, or None when the balance was too low (or the
        profile does not exist - callers check existence first). Does not commit.
        """
        debit = to_money(amount)
        if debit < 0:
            raise InvalidAmountError(debit, "debit cannot be negative")

        result = await self.db.execute(
            update(Profile)
            .where(Profile.id == user_id, Profile.wallet_balance >= debit)
            .values(wallet_balance=Profile.wallet_balance - debit)
            .returning(Profile.wallet_balance)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def append_transaction(
        self,
        transaction_type: TransactionType,
        amount: Any,
        payment_method: str,
        *,
        user_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        ride_id: Optional[int] = None,
        commission: Any = Decimal("0.00"),
        driver_earnings: Any = Decimal("0.00"),
        status: TransactionStatus = TransactionStatus.COMPLETED,
        from_wallet: bool = False,
        **extra_fields: Any,
    ) -> Transaction:
        """Insert an audit row and flush it to get its id. Does not commit."""
        transaction = Transaction(
            transaction_type=transaction_type,
            user_id=user_id,
            driver_id=driver_id,
            ride_id=ride_id,
            amount=to_money(amount),
            commission=to_money(commission),
            driver_earnings=to_money(driver_earnings),
            payment_method=payment_method,
            status=status,
            from_wallet=from_wallet,
            **extra_fields,
        )
        self.db.add(transaction)
        await self.db.flush()
        return transaction

    async def top_up(self, user_id: int, amount: Any, payment_method: str) -> Transaction:
        """
        Capture ``amount`` through the payment gateway, then credit the wallet
        and record a completed top-up with zero commission.
        """
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationException(
                f"Unsupported payment method: {payment_method}",
                field="payment_method",
            )

        is_valid, error = AmountValidator.validate(amount, min_value=settings.MIN_TOPUP_AMOUNT)
        if not is_valid:
            raise InvalidAmountError(amount, error)
        credit = to_money(amount)

        await self.get_profile(user_id)

        capture = await self.gateway.capture(user_id, credit, method.value)

        try:
            new_balance = await self.adjust_balance(user_id, credit)
            transaction = await self.append_transaction(
                TransactionType.TOP_UP,
                credit,
                method.value,
                user_id=user_id,
                gateway_reference=capture.reference,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error(
                "Wallet top-up failed after gateway capture",
                extra_data={
                    "user_id": user_id,
                    "amount": credit,
                    "gateway_reference": capture.reference,
                },
                exc_info=True,
            )
            raise

        logger.info(
            "Wallet topped up",
            extra_data={
                "user_id": user_id,
                "amount": credit,
                "payment_method": method.value,
                "new_balance": new_balance,
                "transaction_id": transaction.id,
            }
        )
        await self.cache.invalidate(DashboardScope.WALLET, user_id)
        return transaction

    async def get_transaction_history(
        self,
        user_id: int,
        limit: int = 20
    ) -> List[Transaction]:
        """Transactions where the user paid or earned, newest first"""
        result = await self.db.execute(
            select(Transaction)
            .where((Transaction.user_id == user_id) | (Transaction.driver_id == user_id))
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_wallet_summary(self, user_id: int) -> dict[str, Any]:
        """Balance and recent activity for the rider dashboard, served from cache when warm"""
        cached = await self.cache.get(DashboardScope.WALLET, user_id)
        if cached is not None:
            return cached

        profile = await self.get_profile(user_id)
        history = await self.get_transaction_history(user_id, limit=10)
        summary = {
            "user_id": profile.id,
            "wallet_balance": str(profile.wallet_balance),
            "recent_transactions": [
                {
                    "id": t.id,
                    "transaction_type": t.transaction_type.value,
                    "amount": str(t.amount),
                    "payment_method": t.payment_method,
                    "status": t.status.value,
                    "created_at": t.created_at.isoformat() if t.created_at else None,
                }
                for t in history
            ],
        }
        await self.cache.set(DashboardScope.WALLET, user_id, summary)
        return summary
