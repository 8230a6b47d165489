from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.adjustment import InitialBalanceCreate, InitialBalanceResponse
from finance_tracker.services.balance_service import (
    get_latest_initial_balance,
    record_initial_balance,
)
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["期初余额"], dependencies=[Depends(get_current_user)])


@router.get("/balance", response_model=InitialBalanceResponse, summary="当前期初余额")
async def get_initial_balance(db: AsyncSession = Depends(get_db)):
    """最新一行生效；从未设置时返回 0"""
    latest = await get_latest_initial_balance(db)
    if not latest:
        return InitialBalanceResponse(amount=0, note=None)
    return InitialBalanceResponse.model_validate(latest)


@router.post(
    "/balance",
    response_model=InitialBalanceResponse,
    status_code=201,
    summary="设置期初余额",
)
async def post_initial_balance(body: InitialBalanceCreate, db: AsyncSession = Depends(get_db)):
    row = await record_initial_balance(db, body.amount, body.note)
    return InitialBalanceResponse.model_validate(row)
