"""分类与月度预算"""

from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from finance_tracker.database import unit_of_work
from finance_tracker.errors import ValidationError, NotFoundError, ConflictError
from finance_tracker.models.category import Category, Budget
from finance_tracker.models.transaction import Expense
from finance_tracker.services.balance_service import to_amount


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return list(result.scalars().all())


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: str | None = None) -> None:
    stmt = select(Category).where(Category.name == name)
    if exclude_id:
        stmt = stmt.where(Category.id != exclude_id)
    if (await db.execute(stmt)).scalar_one_or_none():
        raise ValidationError(f"Category '{name}' already exists")


@unit_of_work
async def create_category(db: AsyncSession, name: str, icon: str, color: str) -> Category:
    await _ensure_unique_name(db, name)
    category = Category(name=name, icon=icon, color=color)
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return category


@unit_of_work
async def update_category(
    db: AsyncSession, category_id: str, name: str, icon: str, color: str
) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    await _ensure_unique_name(db, name, exclude_id=category_id)

    category.name = name
    category.icon = icon
    category.color = color
    await db.flush()
    await db.refresh(category)
    return category


@unit_of_work
async def delete_category(db: AsyncSession, category_id: str) -> None:
    """有支出或预算引用时不可删"""
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")

    expense_count = (await db.execute(
        select(func.count()).select_from(Expense).where(Expense.category_id == category_id)
    )).scalar()
    if expense_count > 0:
        raise ConflictError("Cannot delete category with existing expenses")

    budget_count = (await db.execute(
        select(func.count()).select_from(Budget).where(Budget.category_id == category_id)
    )).scalar()
    if budget_count > 0:
        raise ConflictError("Cannot delete category with existing budgets")

    await db.delete(category)
    await db.flush()


# ─────────────────────── 预算 ───────────────────────


async def list_budgets(db: AsyncSession, month: int, year: int) -> list[Budget]:
    result = await db.execute(
        select(Budget)
        .options(selectinload(Budget.category))
        .where(Budget.month == month, Budget.year == year)
    )
    return list(result.scalars().all())


@unit_of_work
async def upsert_budget(
    db: AsyncSession, category_id: str, amount: Decimal, month: int, year: int
) -> Budget:
    """同一分类同一月份只保留一条预算，重复提交即更新金额"""
    value = to_amount(amount)
    if value <= 0:
        raise ValidationError("Amount must be greater than 0")
    if not await db.get(Category, category_id):
        raise NotFoundError("Category not found")

    result = await db.execute(
        select(Budget).where(
            Budget.category_id == category_id,
            Budget.month == month,
            Budget.year == year,
        )
    )
    budget = result.scalar_one_or_none()
    if budget:
        budget.amount = value
    else:
        budget = Budget(category_id=category_id, amount=value, month=month, year=year)
        db.add(budget)
    await db.flush()

    result = await db.execute(
        select(Budget)
        .options(selectinload(Budget.category))
        .where(Budget.id == budget.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@unit_of_work
async def delete_budget(db: AsyncSession, budget_id: str) -> None:
    budget = await db.get(Budget, budget_id)
    if not budget:
        raise NotFoundError("Budget not found")
    await db.delete(budget)
    await db.flush()
