"""
Domain Services
"""
from thdrive.domain.services.wallet_service import WalletService
from thdrive.domain.services.driver_service import DriverService
from thdrive.domain.services.commission_service import (
    CommissionService,
    CommissionSettlement,
    CommissionOutcome,
)
from thdrive.domain.services.qr_payment_service import QRPaymentService, QRSettlement
from thdrive.domain.services.withdrawal_service import WithdrawalService
from thdrive.domain.services.notification_service import NotificationService
from thdrive.domain.services.dashboard_cache import DashboardCache, DashboardScope

__all__ = [
    "WalletService",
    "DriverService",
    "CommissionService",
    "CommissionSettlement",
    "CommissionOutcome",
    "QRPaymentService",
    "QRSettlement",
    "WithdrawalService",
    "NotificationService",
    "DashboardCache",
    "DashboardScope",
]
