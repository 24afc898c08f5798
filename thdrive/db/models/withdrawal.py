"""
Withdrawal Model - Driver Payout Requests
"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, Numeric, ForeignKey

from thdrive.db.database import Base


class WithdrawalMethod(str, enum.Enum):
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_WALLET = "mobile_wallet"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Withdrawal(Base):
    """Payout request; the amount leaves earnings_balance when the request is made"""

    __tablename__ = "withdrawals"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(
        SQLEnum(
            WithdrawalMethod,
            name="withdrawal_method",
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False
    )
    paypal_email = Column(String(255), nullable=True)
    status = Column(
        SQLEnum(
            WithdrawalStatus,
            name="withdrawal_status",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=WithdrawalStatus.PENDING,
        nullable=False
    )
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime, nullable=True)
