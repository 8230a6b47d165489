"""应收款 / 收款 API 路由"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.common import MessageResponse
from finance_tracker.schemas.receivable import (
    ReceivableCreate,
    ReceivableUpdate,
    ReceivableResponse,
    ReceivableDetailResponse,
    PaymentCreate,
    PaymentResponse,
)
from finance_tracker.services import receivable_service as svc
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["应收款"], dependencies=[Depends(get_current_user)])


# ───── 应收款 ─────


@router.get("/receivables", response_model=list[ReceivableDetailResponse])
async def get_receivables(
    status: str | None = Query(None, pattern=r"^(active|partially_paid|paid)$"),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_receivables(db, status)
    return [ReceivableDetailResponse.model_validate(r) for r in rows]


@router.post("/receivables", response_model=ReceivableResponse, status_code=201)
async def post_receivable(body: ReceivableCreate, db: AsyncSession = Depends(get_db)):
    receivable = await svc.create_receivable(
        db,
        body.debtor_name,
        body.total_amount,
        description=body.description,
        on_date=body.date,
        due_date=body.due_date,
    )
    return ReceivableResponse.model_validate(receivable)


@router.put("/receivables", response_model=ReceivableDetailResponse)
async def put_receivable(body: ReceivableUpdate, db: AsyncSession = Depends(get_db)):
    await svc.update_receivable(
        db,
        body.id,
        body.debtor_name,
        body.total_amount,
        description=body.description,
        on_date=body.date,
        due_date=body.due_date,
    )
    receivable = await svc.get_receivable(db, body.id)
    return ReceivableDetailResponse.model_validate(receivable)


@router.delete("/receivables", response_model=MessageResponse)
async def remove_receivable(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    """有收款记录的应收款不可删除"""
    await svc.delete_receivable(db, id)
    return MessageResponse(message="Receivable deleted successfully")


# ───── 收款 ─────


@router.get("/receivables/payments", response_model=list[PaymentResponse])
async def get_payments(
    receivable_id: str | None = Query(None, alias="receivableId"),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_payments(db, receivable_id)
    return [PaymentResponse.model_validate(r) for r in rows]


@router.post("/receivables/payments", response_model=PaymentResponse, status_code=201)
async def post_payment(body: PaymentCreate, db: AsyncSession = Depends(get_db)):
    """登记收款：超过剩余应收时 400"""
    payment = await svc.apply_payment(
        db,
        body.receivable_id,
        body.amount,
        body.account_id,
        on_date=body.date,
        note=body.note,
    )
    return PaymentResponse.model_validate(payment)


@router.delete("/receivables/payments", response_model=MessageResponse)
async def remove_payment(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    """冲销收款：恢复应收余额与状态，并删除对应的镜像收入"""
    await svc.reverse_payment(db, id)
    return MessageResponse(message="Payment deleted successfully")
