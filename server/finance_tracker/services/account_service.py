from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import unit_of_work
from finance_tracker.errors import ConflictError, NotFoundError
from finance_tracker.models.account import Account
from finance_tracker.models.adjustment import Adjustment
from finance_tracker.models.receivable import ReceivablePayment
from finance_tracker.models.transaction import Income, Expense, Transfer
from finance_tracker.services.balance_service import get_accounts_ordered, to_amount, to_money


async def list_accounts(db: AsyncSession) -> list[Account]:
    """默认账户在前，其余按创建时间升序"""
    return await get_accounts_ordered(db)


async def get_account_by_id(db: AsyncSession, account_id: str) -> Account:
    account = await db.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found")
    return account


async def get_default_account(db: AsyncSession) -> Account:
    result = await db.execute(select(Account).where(Account.is_default.is_(True)))
    account = result.scalar_one_or_none()
    if not account:
        raise NotFoundError("Default account not found")
    return account


async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(
        select(func.count()).select_from(model).where(*conditions)
    )
    return result.scalar() or 0


async def _reference_counts(db: AsyncSession, account_id: str) -> dict[str, int]:
    """统计引用该账户的各类流水条数"""
    return {
        "income": await _count(db, Income, Income.account_id == account_id),
        "expense": await _count(db, Expense, Expense.account_id == account_id),
        "transfer": await _count(
            db,
            Transfer,
            or_(Transfer.from_account_id == account_id, Transfer.to_account_id == account_id),
        ),
        "adjustment": await _count(db, Adjustment, Adjustment.account_id == account_id),
        "receivable_payment": await _count(
            db, ReceivablePayment, ReceivablePayment.account_id == account_id
        ),
    }


@unit_of_work
async def create_account(
    db: AsyncSession,
    name: str,
    acc_type: str,
    icon: str,
    color: str,
    initial_balance: Decimal | None = None,
) -> Account:
    """新建账户，is_default 恒为 False"""
    account = Account(
        name=name,
        type=acc_type,
        icon=icon,
        color=color,
        initial_balance=to_amount(initial_balance or 0),
        is_default=False,
    )
    db.add(account)
    await db.flush()
    await db.refresh(account)
    return account


@unit_of_work
async def update_account(
    db: AsyncSession,
    account_id: str,
    name: str | None = None,
    acc_type: str | None = None,
    icon: str | None = None,
    color: str | None = None,
    initial_balance: Decimal | None = None,
) -> Account:
    """展示字段随时可改；已有流水引用时初始余额不可再改"""
    account = await get_account_by_id(db, account_id)

    if initial_balance is not None and to_amount(initial_balance) != account.initial_balance:
        counts = await _reference_counts(db, account_id)
        if any(counts.values()):
            raise ConflictError(
                "Cannot change initial balance of an account with existing transactions. "
                "Record an adjustment instead."
            )
        account.initial_balance = to_amount(initial_balance)

    if name is not None:
        account.name = name
    if acc_type is not None:
        account.type = acc_type
    if icon is not None:
        account.icon = icon
    if color is not None:
        account.color = color

    await db.flush()
    await db.refresh(account)
    return account


@unit_of_work
async def delete_account(db: AsyncSession, account_id: str) -> None:
    """默认账户不可删；有收入/支出（以及转账、调节、收款）引用时不可删"""
    account = await get_account_by_id(db, account_id)
    if account.is_default:
        raise ConflictError("Cannot delete default account")

    counts = await _reference_counts(db, account_id)
    if counts["income"] or counts["expense"]:
        raise ConflictError("Cannot delete account with existing transactions")
    if counts["transfer"] or counts["adjustment"] or counts["receivable_payment"]:
        raise ConflictError(
            "Cannot delete account referenced by transfers, adjustments or receivable payments"
        )

    await db.delete(account)
    await db.flush()
