"""
Wallet API Routes
"""
from datetime import datetime
from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from thdrive.db.database import get_db
from thdrive.db.models.transaction import TransactionType, TransactionStatus
from thdrive.domain.services.wallet_service import WalletService

router = APIRouter()


class TopUpRequest(BaseModel):
    amount: Decimal
    payment_method: str


class TransactionResponse(BaseModel):
    id: int
    transaction_type: TransactionType
    ride_id: int | None
    user_id: int | None
    driver_id: int | None
    amount: Decimal
    commission: Decimal
    driver_earnings: Decimal
    payment_method: str
    status: TransactionStatus
    gateway_reference: str | None = None
    created_at: datetime | None

    class Config:
        from_attributes = True


@router.get(
    "/{user_id}",
    summary="Wallet summary",
    description="Balance and recent transactions. Cached until the next settlement touching this wallet.",
)
async def get_wallet(
    user_id: int,
    db: AsyncSession = Depends(get_db)
):
    service = WalletService(db)
    return await service.get_wallet_summary(user_id)


@router.post(
    "/{user_id}/top-up",
    response_model=TransactionResponse,
    status_code=201,
    summary="Top up a wallet",
)
async def top_up_wallet(
    user_id: int,
    data: TopUpRequest,
    db: AsyncSession = Depends(get_db)
):
    service = WalletService(db)
    return await service.top_up(user_id, data.amount, data.payment_method)


@router.get(
    "/{user_id}/transactions",
    response_model=List[TransactionResponse],
    summary="Transaction history",
)
async def get_transaction_history(
    user_id: int,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    service = WalletService(db)
    await service.get_profile(user_id)
    return await service.get_transaction_history(user_id, limit)
