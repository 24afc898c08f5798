"""
Platform Commission Model - Commission Accrual Ledger
"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, Enum as SQLEnum, Numeric, ForeignKey

from thdrive.db.database import Base


class CommissionSource(str, enum.Enum):
    CASH_RIDE = "cash_ride"
    QR_PAYMENT = "qr_payment"


class PlatformCommission(Base):
    """One row per commission the platform collects; the account total is the sum"""

    __tablename__ = "platform_commissions"

    id = Column(Integer, primary_key=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    source = Column(
        SQLEnum(
            CommissionSource,
            name="commission_source",
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False
    )

    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, index=True)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=True)
    driver_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
