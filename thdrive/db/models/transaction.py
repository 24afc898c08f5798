"""
Transaction Model - Immutable Money Movement Audit
"""
import enum
from decimal import Decimal
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, Numeric, ForeignKey, Boolean

from thdrive.db.database import Base


class TransactionType(str, enum.Enum):
    RIDE_PAYMENT = "ride_payment"
    CASH_COMMISSION = "cash_commission"
    TOP_UP = "top_up"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Transaction(Base):
    """Append-only audit row for every money movement"""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_type = Column(
        SQLEnum(
            TransactionType,
            name="transaction_type",
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        index=True
    )

    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    driver_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    commission = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    driver_earnings = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)

    # card / qr_code / cash for rides and top-ups, payout method for withdrawals
    payment_method = Column(String(30), nullable=False)
    status = Column(
        SQLEnum(
            TransactionStatus,
            name="transaction_status",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=TransactionStatus.COMPLETED,
        nullable=False
    )
    from_wallet = Column(Boolean, default=False)

    qr_code_id = Column(Integer, ForeignKey("qr_codes.id"), nullable=True, unique=True)
    qr_scanned_at = Column(DateTime, nullable=True)
    gateway_reference = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
