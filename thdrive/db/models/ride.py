"""
Ride Model
"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, Numeric, ForeignKey, Float

from thdrive.db.database import Base


class RideStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    QR_CODE = "qr_code"
    CASH = "cash"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class Ride(Base):
    """A requested or completed ride"""

    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)  # rider
    driver_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)

    status = Column(
        SQLEnum(RideStatus, name="ride_status", values_callable=_enum_values),
        default=RideStatus.PENDING,
        nullable=False,
        index=True
    )

    pickup_address = Column(String(500), nullable=True)
    dropoff_address = Column(String(500), nullable=True)
    distance_km = Column(Float, nullable=True)
    estimated_duration_min = Column(Float, nullable=True)
    fare = Column(Numeric(10, 2), nullable=True)

    payment_method = Column(
        SQLEnum(PaymentMethod, name="payment_method", values_callable=_enum_values),
        nullable=True
    )
    payment_status = Column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        default=PaymentStatus.PENDING,
        nullable=False
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
