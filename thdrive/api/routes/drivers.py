"""
Driver API Routes - dashboard and withdrawals
"""
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from thdrive.db.database import get_db
from thdrive.db.models.withdrawal import WithdrawalMethod, WithdrawalStatus
from thdrive.domain.services.driver_service import DriverService
from thdrive.domain.services.withdrawal_service import WithdrawalService

router = APIRouter()


class WithdrawalRequest(BaseModel):
    amount: Decimal
    method: str
    paypal_email: str | None = None


class WithdrawalResponse(BaseModel):
    id: int
    driver_id: int
    amount: Decimal
    method: WithdrawalMethod
    status: WithdrawalStatus
    transaction_id: int | None
    created_at: datetime | None

    class Config:
        from_attributes = True


@router.get(
    "/{driver_id}/dashboard",
    summary="Driver dashboard",
    description="Earnings, wallet, pending penalties and recent ride payments.",
)
async def get_driver_dashboard(
    driver_id: int,
    db: AsyncSession = Depends(get_db)
):
    service = DriverService(db)
    return await service.get_driver_dashboard(driver_id)


@router.post(
    "/{driver_id}/withdrawals",
    response_model=WithdrawalResponse,
    status_code=201,
    summary="Request a payout of the earnings balance",
)
async def request_withdrawal(
    driver_id: int,
    data: WithdrawalRequest,
    db: AsyncSession = Depends(get_db)
):
    service = WithdrawalService(db)
    return await service.request_withdrawal(
        driver_id, data.amount, data.method, data.paypal_email
    )
