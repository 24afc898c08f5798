"""
Driver Details Model - Vehicle, Earnings and Penalty Tracking
"""
from decimal import Decimal
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from thdrive.db.database import Base


class DriverDetails(Base):
    """Per-driver earnings ledger and deferred commission state"""

    __tablename__ = "driver_details"
    __table_args__ = (
        CheckConstraint("earnings_balance >= 0", name="ck_driver_details_earnings_non_negative"),
        CheckConstraint("pending_penalties >= 0", name="ck_driver_details_penalties_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), unique=True, nullable=False)

    license_number = Column(String(50), nullable=True)
    vehicle_make = Column(String(50), nullable=True)
    vehicle_model = Column(String(50), nullable=True)
    vehicle_color = Column(String(30), nullable=True)
    vehicle_plate = Column(String(20), nullable=True)
    is_verified = Column(Boolean, default=False)

    # Withdrawable balance vs. lifetime total
    earnings_balance = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    total_earnings = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)

    # Deferred cash-ride commission
    pending_penalties = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    penalty_deadline = Column(DateTime, nullable=True)
    penalty_notified_at = Column(DateTime, nullable=True)  # overdue alert sent for the current deadline

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    profile = relationship("Profile")
