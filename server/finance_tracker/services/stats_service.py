"""
统计服务：月度收支汇总、分类统计、各账户余额、累计余额、年初至今。
每次从流水实时汇算，不做缓存。
"""

import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.models.category import Category
from finance_tracker.models.transaction import Expense
from finance_tracker.services.balance_service import (
    compute_account_balances,
    compute_cumulative_balance,
    get_latest_initial_balance,
    sum_income_expense,
    to_money,
    total_balance,
)
from finance_tracker.services.transaction_service import month_range


async def _category_stats(
    db: AsyncSession, start: datetime.date, end: datetime.date
) -> list[dict]:
    """分类支出合计与笔数，按金额降序"""
    stmt = (
        select(
            Expense.category_id,
            func.coalesce(func.sum(Expense.amount), 0).label("total"),
            func.count(Expense.id).label("expense_count"),
        )
        .where(Expense.date >= start, Expense.date <= end)
        .group_by(Expense.category_id)
    )
    rows = (await db.execute(stmt)).all()

    categories = {
        c.id: c for c in (await db.execute(select(Category))).scalars().all()
    }

    items = []
    for row in rows:
        category = categories.get(row.category_id)
        items.append({
            "category_id": row.category_id,
            "category": category.name if category else "Unknown",
            "icon": category.icon if category else "📦",
            "color": category.color if category else "#95E1D3",
            "total": to_money(row.total),
            "count": row.expense_count,
        })
    items.sort(key=lambda x: x["total"], reverse=True)
    return items


async def get_stats(
    db: AsyncSession,
    month: int | None = None,
    year: int | None = None,
) -> dict:
    """
    1. 本月收入、支出、净额与分类统计
    2. 截至月末的各账户余额及合计
    3. 旧版全局累计余额（最新期初 + 月初之前净额 + 本月净额）
    4. 年初至月末的收支
    """
    today_ = datetime.date.today()
    month = month or today_.month
    year = year or today_.year
    start, end = month_range(month, year)

    total_income, total_expenses = await sum_income_expense(db, start, end)
    category_stats = await _category_stats(db, start, end)

    balances = await compute_account_balances(db, as_of=end)
    account_balances = [
        {
            "account_id": b.account.id,
            "name": b.account.name,
            "type": b.account.type,
            "icon": b.account.icon,
            "color": b.account.color,
            "is_default": b.account.is_default,
            "balance": b.balance,
        }
        for b in balances
    ]

    latest = await get_latest_initial_balance(db)
    cumulative = await compute_cumulative_balance(db, start, end)

    ytd_income, ytd_expenses = await sum_income_expense(
        db, datetime.date(year, 1, 1), end
    )

    return {
        "month": month,
        "year": year,
        "total_income": total_income,
        "total_expenses": total_expenses,
        "balance": to_money(total_income - total_expenses),
        "category_stats": category_stats,
        "account_balances": account_balances,
        "total_balance": total_balance(balances),
        "initial_balance": to_money(latest.amount if latest else 0),
        "cumulative_balance": cumulative,
        "ytd_income": ytd_income,
        "ytd_expenses": ytd_expenses,
        "ytd_balance": to_money(ytd_income - ytd_expenses),
    }
