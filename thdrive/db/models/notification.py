"""
Notification Model - Per-account Inbox
"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum, JSON, Boolean, ForeignKey, Text

from thdrive.db.database import Base


class NotificationType(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"
    SUCCESS = "success"


class Notification(Base):
    """Immutable message addressed to one account"""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(
        SQLEnum(
            NotificationType,
            name="notification_type",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=NotificationType.INFO,
        nullable=False
    )

    related_type = Column(String(50), nullable=True)  # ride, commission, withdrawal, ...
    related_id = Column(Integer, nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)

    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
