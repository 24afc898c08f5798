"""
Database Models
"""
from thdrive.db.models.profile import Profile
from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.ride import Ride
from thdrive.db.models.qr_code import QRCode
from thdrive.db.models.transaction import Transaction
from thdrive.db.models.platform_commission import PlatformCommission
from thdrive.db.models.notification import Notification
from thdrive.db.models.withdrawal import Withdrawal

__all__ = [
    "Profile",
    "DriverDetails",
    "Ride",
    "QRCode",
    "Transaction",
    "PlatformCommission",
    "Notification",
    "Withdrawal",
]
