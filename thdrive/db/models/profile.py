"""
Profile Model - Riders, Drivers and Staff
"""
import enum
from decimal import Decimal
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, Boolean, Numeric

from thdrive.db.database import Base


class ProfileRole(str, enum.Enum):
    USER = "user"
    DRIVER = "driver"
    ADMIN = "admin"
    MODERATOR = "moderator"


class Profile(Base):
    """Account record; owns the spendable wallet balance"""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(150), nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(
        SQLEnum(
            ProfileRole,
            name="profile_role",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=ProfileRole.USER,
        nullable=False
    )

    # Mutated only through signed deltas (WalletService.adjust_balance)
    wallet_balance = Column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)

    is_banned = Column(Boolean, default=False)
    ban_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
