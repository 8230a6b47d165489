from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.adjustment import AdjustmentCreate, AdjustmentResponse
from finance_tracker.schemas.common import MessageResponse
from finance_tracker.services.reconciliation_service import (
    reconcile,
    list_adjustments,
    delete_adjustment,
)
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["对账"], dependencies=[Depends(get_current_user)])


@router.get("/adjustments", response_model=list[AdjustmentResponse], summary="调节记录")
async def get_adjustments(
    account_id: str | None = Query(None, alias="accountId"),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_adjustments(db, account_id)
    return [AdjustmentResponse.model_validate(r) for r in rows]


@router.post(
    "/adjustments",
    response_model=AdjustmentResponse,
    status_code=201,
    summary="按实际余额对账",
)
async def post_adjustment(body: AdjustmentCreate, db: AsyncSession = Depends(get_db)):
    """快照账面余额，写入差额调节，使账面余额等于实际余额"""
    adjustment = await reconcile(
        db, body.account_id, body.actual_balance, note=body.note, on_date=body.date
    )
    return AdjustmentResponse.model_validate(adjustment)


@router.delete("/adjustments", response_model=MessageResponse, summary="删除调节记录")
async def remove_adjustment(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    await delete_adjustment(db, id)
    return MessageResponse(
        message="Adjustment deleted successfully",
        warning=(
            "Deleting an adjustment edits history: every balance computed after it changes. "
            "It does not undo a reconciliation."
        ),
    )
