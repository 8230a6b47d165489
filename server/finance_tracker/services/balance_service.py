"""
余额引擎：从初始余额、收入、支出、转账、调节五路流水实时汇算账户余额；
应收款剩余额与状态的推导。无缓存，每次按需查询。
"""

import datetime
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import unit_of_work
from finance_tracker.errors import NotFoundError, ValidationError
from finance_tracker.models.account import Account
from finance_tracker.models.adjustment import Adjustment, InitialBalance
from finance_tracker.models.transaction import Income, Expense, Transfer

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """聚合结果统一转为两位小数的 Decimal，空值视为 0"""
    if value is None:
        return ZERO.quantize(CENT)
    return Decimal(str(value)).quantize(CENT, ROUND_HALF_UP)


def to_amount(value) -> Decimal:
    """用户输入的金额：最多两位小数，多出的精度直接拒绝，不做四舍五入"""
    amount = Decimal(str(value))
    if amount != amount.quantize(CENT):
        raise ValidationError("Amount must have at most 2 decimal places")
    return amount.quantize(CENT)


# ─────────────────────── 应收款状态 ───────────────────────


@dataclass(frozen=True)
class ReceivableState:
    remaining: Decimal
    status: str


def derive_receivable_status(remaining: Decimal, total_amount: Decimal) -> str:
    """remaining == 0 → paid；remaining < total → partially_paid；否则 active"""
    if remaining == 0:
        return "paid"
    if remaining < total_amount:
        return "partially_paid"
    return "active"


def compute_receivable_state(
    total_amount: Decimal, payment_amounts: Iterable[Decimal]
) -> ReceivableState:
    paid = sum((Decimal(a) for a in payment_amounts), ZERO)
    remaining = to_money(Decimal(total_amount) - paid)
    return ReceivableState(
        remaining=remaining,
        status=derive_receivable_status(remaining, Decimal(total_amount)),
    )


# ─────────────────────── 账户余额 ───────────────────────


async def _sum_by(db: AsyncSession, amount_col, key_col, date_col, as_of) -> dict[str, Decimal]:
    """按外键分组求和，可选截止日期（含当天）"""
    stmt = select(key_col, func.coalesce(func.sum(amount_col), 0)).group_by(key_col)
    if as_of is not None:
        stmt = stmt.where(date_col <= as_of)
    result = await db.execute(stmt)
    return {row[0]: to_money(row[1]) for row in result.all()}


async def _sum_for(db: AsyncSession, amount_col, key_col, key, date_col, as_of) -> Decimal:
    stmt = select(func.coalesce(func.sum(amount_col), 0)).where(key_col == key)
    if as_of is not None:
        stmt = stmt.where(date_col <= as_of)
    result = await db.execute(stmt)
    return to_money(result.scalar())


async def compute_account_balance(
    db: AsyncSession,
    account_id: str,
    as_of: datetime.date | None = None,
) -> Decimal:
    """
    账户余额 = 初始余额 + 收入 − 支出 + 转入 − 转出 + 调节差额。
    as_of 为空时统计全部历史，否则只统计 date <= as_of 的流水。
    """
    account = await db.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found")

    income = await _sum_for(db, Income.amount, Income.account_id, account_id, Income.date, as_of)
    expense = await _sum_for(db, Expense.amount, Expense.account_id, account_id, Expense.date, as_of)
    transfers_out = await _sum_for(
        db, Transfer.amount, Transfer.from_account_id, account_id, Transfer.date, as_of
    )
    transfers_in = await _sum_for(
        db, Transfer.amount, Transfer.to_account_id, account_id, Transfer.date, as_of
    )
    adjustments = await _sum_for(
        db, Adjustment.difference, Adjustment.account_id, account_id, Adjustment.date, as_of
    )

    return to_money(
        to_money(account.initial_balance)
        + income
        - expense
        + transfers_in
        - transfers_out
        + adjustments
    )


@dataclass
class AccountBalance:
    account: Account
    balance: Decimal


async def get_accounts_ordered(db: AsyncSession) -> list[Account]:
    """默认账户在前，其余按创建时间升序"""
    result = await db.execute(
        select(Account).order_by(Account.is_default.desc(), Account.created_at.asc())
    )
    return list(result.scalars().all())


async def compute_account_balances(
    db: AsyncSession,
    as_of: datetime.date | None = None,
) -> list[AccountBalance]:
    """一次性计算所有账户余额：五路流水各一条 GROUP BY 查询，账户之间互不抵消"""
    accounts = await get_accounts_ordered(db)

    income = await _sum_by(db, Income.amount, Income.account_id, Income.date, as_of)
    expense = await _sum_by(db, Expense.amount, Expense.account_id, Expense.date, as_of)
    transfers_out = await _sum_by(
        db, Transfer.amount, Transfer.from_account_id, Transfer.date, as_of
    )
    transfers_in = await _sum_by(
        db, Transfer.amount, Transfer.to_account_id, Transfer.date, as_of
    )
    adjustments = await _sum_by(
        db, Adjustment.difference, Adjustment.account_id, Adjustment.date, as_of
    )

    balances = []
    for acc in accounts:
        balance = (
            to_money(acc.initial_balance)
            + income.get(acc.id, ZERO)
            - expense.get(acc.id, ZERO)
            + transfers_in.get(acc.id, ZERO)
            - transfers_out.get(acc.id, ZERO)
            + adjustments.get(acc.id, ZERO)
        )
        balances.append(AccountBalance(account=acc, balance=to_money(balance)))
    return balances


def total_balance(balances: Iterable[AccountBalance]) -> Decimal:
    return to_money(sum((b.balance for b in balances), ZERO))


# ─────────────────────── 全局期初余额（旧版单账户模式） ───────────────────────


async def get_latest_initial_balance(db: AsyncSession) -> InitialBalance | None:
    """最新一行生效，历史行保留"""
    result = await db.execute(
        select(InitialBalance).order_by(InitialBalance.created_at.desc()).limit(1)
    )
    return result.scalar_one_or_none()


async def _net_between(
    db: AsyncSession,
    start: datetime.date | None,
    end: datetime.date | None,
    end_inclusive: bool = True,
) -> tuple[Decimal, Decimal]:
    """全局收入、支出合计（不分账户）"""

    def _bounded(stmt, date_col):
        if start is not None:
            stmt = stmt.where(date_col >= start)
        if end is not None:
            stmt = stmt.where(date_col <= end if end_inclusive else date_col < end)
        return stmt

    income = await db.execute(
        _bounded(select(func.coalesce(func.sum(Income.amount), 0)), Income.date)
    )
    expense = await db.execute(
        _bounded(select(func.coalesce(func.sum(Expense.amount), 0)), Expense.date)
    )
    return to_money(income.scalar()), to_money(expense.scalar())


async def compute_cumulative_balance(
    db: AsyncSession,
    period_start: datetime.date,
    period_end: datetime.date,
) -> Decimal:
    """
    累计余额 = 最新期初余额 + 期初之前的收入 − 期初之前的支出 + 本期净额
    """
    latest = await get_latest_initial_balance(db)
    baseline = to_money(latest.amount) if latest else to_money(ZERO)

    prior_income, prior_expense = await _net_between(db, None, period_start, end_inclusive=False)
    period_income, period_expense = await _net_between(db, period_start, period_end)

    return to_money(
        baseline + prior_income - prior_expense + period_income - period_expense
    )


async def sum_income_expense(
    db: AsyncSession,
    start: datetime.date,
    end: datetime.date,
) -> tuple[Decimal, Decimal]:
    """闭区间 [start, end] 内的全局收入、支出合计"""
    return await _net_between(db, start, end)


@unit_of_work
async def record_initial_balance(
    db: AsyncSession, amount: Decimal, note: str | None = None
) -> InitialBalance:
    """追加一行期初余额，覆盖旧值但不删除历史"""
    row = InitialBalance(amount=to_amount(amount), note=note or None)
    db.add(row)
    await db.flush()
    await db.refresh(row)
    return row
