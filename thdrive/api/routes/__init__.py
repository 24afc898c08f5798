"""
API Routes
"""
from fastapi import APIRouter

from thdrive.api.routes.payments import router as payments_router
from thdrive.api.routes.wallets import router as wallets_router
from thdrive.api.routes.drivers import router as drivers_router
from thdrive.api.routes.notifications import router as notifications_router
from thdrive.api.routes.rides import router as rides_router

router = APIRouter()

router.include_router(payments_router, prefix="/payments", tags=["payments"])
router.include_router(wallets_router, prefix="/wallets", tags=["wallets"])
router.include_router(drivers_router, prefix="/drivers", tags=["drivers"])
router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
router.include_router(rides_router, prefix="/rides", tags=["rides"])
