"""
Payment API Routes - cash commission and QR payments
"""
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from thdrive.db.database import get_db
from thdrive.domain.services.commission_service import CommissionService
from thdrive.domain.services.qr_payment_service import QRPaymentService

router = APIRouter()


class CashCommissionRequest(BaseModel):
    driver_id: int
    ride_id: int
    amount: Decimal


class CashCommissionResponse(BaseModel):
    outcome: str
    commission: Decimal
    deadline: datetime | None = None


class QRCodeCreate(BaseModel):
    rider_id: int
    ride_id: int
    amount: Decimal


class QRCodeResponse(BaseModel):
    id: int
    code: str
    ride_id: int
    amount: Decimal
    expires_at: datetime

    class Config:
        from_attributes = True


class QRScanRequest(BaseModel):
    code: str
    driver_id: int

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("QR code is required")
        return v


class QRSettlementResponse(BaseModel):
    success: bool
    amount: Decimal
    commission: Decimal
    driver_earnings: Decimal
    transaction_id: int


@router.post(
    "/cash-commission",
    response_model=CashCommissionResponse,
    summary="Settle the platform commission for a cash ride",
    description=(
        "Debits the commission from the driver's wallet when it covers it, "
        "otherwise records it as a pending penalty due within 24 hours."
    ),
)
async def settle_cash_commission(
    data: CashCommissionRequest,
    db: AsyncSession = Depends(get_db)
):
    service = CommissionService(db)
    settlement = await service.settle_cash_commission(data.driver_id, data.ride_id, data.amount)
    return CashCommissionResponse(
        outcome=settlement.outcome.value,
        commission=settlement.commission,
        deadline=settlement.deadline,
    )


@router.post(
    "/qr-codes",
    response_model=QRCodeResponse,
    status_code=201,
    summary="Issue a QR payment code for a ride",
)
async def issue_qr_code(
    data: QRCodeCreate,
    db: AsyncSession = Depends(get_db)
):
    service = QRPaymentService(db)
    return await service.issue_qr_code(data.rider_id, data.ride_id, data.amount)


@router.post(
    "/qr-codes/scan",
    response_model=QRSettlementResponse,
    summary="Settle a scanned QR payment code",
    description="Moves the fare from the rider's wallet to the driver's earnings and the platform commission.",
)
async def scan_qr_code(
    data: QRScanRequest,
    db: AsyncSession = Depends(get_db)
):
    service = QRPaymentService(db)
    settlement = await service.process_qr_payment(data.code, data.driver_id)
    return QRSettlementResponse(
        success=settlement.success,
        amount=settlement.amount,
        commission=settlement.commission,
        driver_earnings=settlement.driver_earnings,
        transaction_id=settlement.transaction_id,
    )
