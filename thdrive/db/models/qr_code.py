"""
QR Code Model - Single-use Payment Tokens
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, ForeignKey, Index

from thdrive.db.database import Base


class QRCode(Base):
    """Rider-issued payment token bound to one ride and one amount"""

    __tablename__ = "qr_codes"
    __table_args__ = (
        Index("ix_qr_codes_code_unused", "code", "is_used"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(100), unique=True, nullable=False, index=True)

    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)  # rider who pays
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)

    # unused -> used is terminal
    is_used = Column(Boolean, default=False, nullable=False)
    scanned_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    used_at = Column(DateTime, nullable=True)

    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
