from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    BudgetUpsert,
    BudgetResponse,
)
from finance_tracker.schemas.common import MessageResponse
from finance_tracker.services import category_service as svc
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["分类与预算"], dependencies=[Depends(get_current_user)])


@router.get("/categories", response_model=list[CategoryResponse])
async def get_categories(db: AsyncSession = Depends(get_db)):
    rows = await svc.list_categories(db)
    return [CategoryResponse.model_validate(r) for r in rows]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def post_category(body: CategoryCreate, db: AsyncSession = Depends(get_db)):
    category = await svc.create_category(db, body.name, body.icon, body.color)
    return CategoryResponse.model_validate(category)


@router.put("/categories", response_model=CategoryResponse)
async def put_category(body: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    category = await svc.update_category(db, body.id, body.name, body.icon, body.color)
    return CategoryResponse.model_validate(category)


@router.delete("/categories", response_model=MessageResponse)
async def remove_category(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    await svc.delete_category(db, id)
    return MessageResponse(message="Category deleted successfully")


# ───── 预算 ─────


@router.get("/budgets", response_model=list[BudgetResponse])
async def get_budgets(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_budgets(db, month, year)
    return [BudgetResponse.model_validate(r) for r in rows]


@router.post("/budgets", response_model=BudgetResponse, status_code=201)
async def post_budget(body: BudgetUpsert, db: AsyncSession = Depends(get_db)):
    """同分类同月份已有预算时更新金额"""
    budget = await svc.upsert_budget(db, body.category_id, body.amount, body.month, body.year)
    return BudgetResponse.model_validate(budget)


@router.delete("/budgets", response_model=MessageResponse)
async def remove_budget(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    await svc.delete_budget(db, id)
    return MessageResponse(message="Budget deleted successfully")
