from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.common import MessageResponse
from finance_tracker.schemas.transaction import (
    IncomeCreate,
    IncomeUpdate,
    IncomeResponse,
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    TransferCreate,
    TransferResponse,
)
from finance_tracker.services import transaction_service as svc
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["流水"], dependencies=[Depends(get_current_user)])


# ───── 收入 ─────


@router.get("/income", response_model=list[IncomeResponse])
async def get_income(
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_income(db, month, year)
    return [IncomeResponse.model_validate(r) for r in rows]


@router.post("/income", response_model=IncomeResponse, status_code=201)
async def post_income(body: IncomeCreate, db: AsyncSession = Depends(get_db)):
    income = await svc.create_income(
        db, body.title, body.amount, body.account_id, body.date
    )
    return IncomeResponse.model_validate(income)


@router.put("/income", response_model=IncomeResponse)
async def put_income(body: IncomeUpdate, db: AsyncSession = Depends(get_db)):
    income = await svc.update_income(
        db, body.id, body.title, body.amount, body.account_id, body.date
    )
    return IncomeResponse.model_validate(income)


@router.delete("/income", response_model=MessageResponse)
async def remove_income(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    await svc.delete_income(db, id)
    return MessageResponse(message="Income deleted successfully")


# ───── 支出 ─────


@router.get("/expenses", response_model=list[ExpenseResponse])
async def get_expenses(
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_expenses(db, month, year)
    return [ExpenseResponse.model_validate(r) for r in rows]


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
async def post_expense(body: ExpenseCreate, db: AsyncSession = Depends(get_db)):
    expense = await svc.create_expense(
        db,
        body.title,
        body.amount,
        body.category_id,
        account_id=body.account_id,
        on_date=body.date,
        description=body.description,
    )
    return ExpenseResponse.model_validate(expense)


@router.put("/expenses", response_model=ExpenseResponse)
async def put_expense(body: ExpenseUpdate, db: AsyncSession = Depends(get_db)):
    expense = await svc.update_expense(
        db,
        body.id,
        body.title,
        body.amount,
        body.category_id,
        account_id=body.account_id,
        on_date=body.date,
        description=body.description,
    )
    return ExpenseResponse.model_validate(expense)


@router.delete("/expenses", response_model=MessageResponse)
async def remove_expense(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    await svc.delete_expense(db, id)
    return MessageResponse(message="Expense deleted successfully")


# ───── 转账 ─────


@router.get("/transfers", response_model=list[TransferResponse])
async def get_transfers(
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_transfers(db, month, year)
    return [TransferResponse.model_validate(r) for r in rows]


@router.post("/transfers", response_model=TransferResponse, status_code=201)
async def post_transfer(body: TransferCreate, db: AsyncSession = Depends(get_db)):
    transfer = await svc.create_transfer(
        db,
        body.from_account_id,
        body.to_account_id,
        body.amount,
        on_date=body.date,
        note=body.note,
    )
    return TransferResponse.model_validate(transfer)


@router.delete("/transfers", response_model=MessageResponse)
async def remove_transfer(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    await svc.delete_transfer(db, id)
    return MessageResponse(message="Transfer deleted successfully")
