"""收入 / 支出 / 转账 CRUD"""

import datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import unit_of_work
from finance_tracker.errors import ValidationError, NotFoundError, ConflictError
from finance_tracker.models.account import Account
from finance_tracker.models.category import Category
from finance_tracker.models.transaction import Income, Expense, Transfer
from finance_tracker.services.account_service import get_default_account
from finance_tracker.services.balance_service import to_amount


def month_range(month: int, year: int) -> tuple[datetime.date, datetime.date]:
    """返回某月第一天和最后一天（闭区间）"""
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    first = datetime.date(year, month, 1)
    last = first + relativedelta(months=1) - datetime.timedelta(days=1)
    return first, last


def _positive(amount: Decimal) -> Decimal:
    value = to_amount(amount)
    if value <= 0:
        raise ValidationError("Amount must be greater than 0")
    return value


async def _require_account(db: AsyncSession, account_id: str) -> Account:
    account = await db.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found")
    return account


async def _require_category(db: AsyncSession, category_id: str) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


def _filter_month(stmt, date_col, month: int | None, year: int | None):
    if month and year:
        start, end = month_range(month, year)
        stmt = stmt.where(date_col >= start, date_col <= end)
    return stmt


# ─────────────────────── 收入 ───────────────────────


async def list_income(
    db: AsyncSession, month: int | None = None, year: int | None = None
) -> list[Income]:
    stmt = _filter_month(select(Income), Income.date, month, year)
    result = await db.execute(stmt.order_by(Income.created_at.desc()))
    return list(result.scalars().all())


@unit_of_work
async def create_income(
    db: AsyncSession,
    title: str,
    amount: Decimal,
    account_id: str,
    on_date: datetime.date | None = None,
) -> Income:
    value = _positive(amount)
    await _require_account(db, account_id)
    income = Income(
        title=title,
        amount=value,
        account_id=account_id,
        date=on_date or datetime.date.today(),
        source="manual",
    )
    db.add(income)
    await db.flush()
    await db.refresh(income)
    return income


async def _get_manual_income(db: AsyncSession, income_id: str) -> Income:
    income = await db.get(Income, income_id)
    if not income:
        raise NotFoundError("Income not found")
    if income.source == "receivable_payment":
        raise ConflictError(
            "This income mirrors a receivable payment. Delete the payment instead."
        )
    return income


@unit_of_work
async def update_income(
    db: AsyncSession,
    income_id: str,
    title: str,
    amount: Decimal,
    account_id: str,
    on_date: datetime.date | None = None,
) -> Income:
    income = await _get_manual_income(db, income_id)
    value = _positive(amount)
    await _require_account(db, account_id)

    income.title = title
    income.amount = value
    income.account_id = account_id
    income.date = on_date or datetime.date.today()
    await db.flush()
    await db.refresh(income)
    return income


@unit_of_work
async def delete_income(db: AsyncSession, income_id: str) -> None:
    income = await _get_manual_income(db, income_id)
    await db.delete(income)
    await db.flush()


# ─────────────────────── 支出 ───────────────────────


async def list_expenses(
    db: AsyncSession, month: int | None = None, year: int | None = None
) -> list[Expense]:
    stmt = _filter_month(select(Expense), Expense.date, month, year)
    result = await db.execute(stmt.order_by(Expense.date.desc(), Expense.created_at.desc()))
    return list(result.scalars().all())


@unit_of_work
async def create_expense(
    db: AsyncSession,
    title: str,
    amount: Decimal,
    category_id: str,
    account_id: str | None = None,
    on_date: datetime.date | None = None,
    description: str | None = None,
) -> Expense:
    """未指定账户时记入默认账户"""
    value = _positive(amount)
    await _require_category(db, category_id)
    if account_id:
        await _require_account(db, account_id)
    else:
        account_id = (await get_default_account(db)).id

    expense = Expense(
        title=title,
        amount=value,
        category_id=category_id,
        account_id=account_id,
        date=on_date or datetime.date.today(),
        description=description,
    )
    db.add(expense)
    await db.flush()
    await db.refresh(expense)
    return expense


@unit_of_work
async def update_expense(
    db: AsyncSession,
    expense_id: str,
    title: str,
    amount: Decimal,
    category_id: str,
    account_id: str | None = None,
    on_date: datetime.date | None = None,
    description: str | None = None,
) -> Expense:
    expense = await db.get(Expense, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")
    value = _positive(amount)
    await _require_category(db, category_id)
    if account_id:
        await _require_account(db, account_id)
        expense.account_id = account_id

    expense.title = title
    expense.amount = value
    expense.category_id = category_id
    expense.date = on_date or datetime.date.today()
    expense.description = description
    await db.flush()
    await db.refresh(expense)
    return expense


@unit_of_work
async def delete_expense(db: AsyncSession, expense_id: str) -> None:
    expense = await db.get(Expense, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")
    await db.delete(expense)
    await db.flush()


# ─────────────────────── 转账 ───────────────────────


async def list_transfers(
    db: AsyncSession, month: int | None = None, year: int | None = None
) -> list[Transfer]:
    stmt = _filter_month(select(Transfer), Transfer.date, month, year)
    result = await db.execute(stmt.order_by(Transfer.date.desc(), Transfer.created_at.desc()))
    return list(result.scalars().all())


@unit_of_work
async def create_transfer(
    db: AsyncSession,
    from_account_id: str,
    to_account_id: str,
    amount: Decimal,
    on_date: datetime.date | None = None,
    note: str | None = None,
) -> Transfer:
    if from_account_id == to_account_id:
        raise ValidationError("Cannot transfer to the same account")
    value = _positive(amount)
    await _require_account(db, from_account_id)
    await _require_account(db, to_account_id)

    transfer = Transfer(
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        amount=value,
        date=on_date or datetime.date.today(),
        note=note,
    )
    db.add(transfer)
    await db.flush()
    await db.refresh(transfer)
    return transfer


@unit_of_work
async def delete_transfer(db: AsyncSession, transfer_id: str) -> None:
    transfer = await db.get(Transfer, transfer_id)
    if not transfer:
        raise NotFoundError("Transfer not found")
    await db.delete(transfer)
    await db.flush()
