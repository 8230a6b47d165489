"""
应收款服务：应收款 CRUD、收款登记与冲销。
收款、应收款余额/状态、镜像收入三者在同一个事务内一起提交或一起回滚。
"""

import datetime
import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from finance_tracker.database import unit_of_work
from finance_tracker.errors import ValidationError, NotFoundError, ConflictError
from finance_tracker.models.account import Account
from finance_tracker.models.receivable import Receivable, ReceivablePayment
from finance_tracker.models.transaction import Income
from finance_tracker.services.balance_service import (
    derive_receivable_status,
    to_amount,
    to_money,
)

logger = logging.getLogger(__name__)

MIRRORED_INCOME_TITLE = "Payment received - {debtor_name}"


def mirrored_income_title(debtor_name: str) -> str:
    return MIRRORED_INCOME_TITLE.format(debtor_name=debtor_name)


# ─────────────────────── 应收款 CRUD ───────────────────────


async def list_receivables(
    db: AsyncSession, status: str | None = None
) -> list[Receivable]:
    stmt = select(Receivable).options(selectinload(Receivable.payments))
    if status:
        stmt = stmt.where(Receivable.status == status)
    stmt = stmt.order_by(Receivable.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_receivable(db: AsyncSession, receivable_id: str) -> Receivable:
    result = await db.execute(
        select(Receivable)
        .options(selectinload(Receivable.payments))
        .where(Receivable.id == receivable_id)
        .execution_options(populate_existing=True)
    )
    receivable = result.scalar_one_or_none()
    if not receivable:
        raise NotFoundError("Receivable not found")
    return receivable


async def _paid_amount(db: AsyncSession, receivable_id: str) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(ReceivablePayment.amount), 0)).where(
            ReceivablePayment.receivable_id == receivable_id
        )
    )
    return to_money(result.scalar())


@unit_of_work
async def create_receivable(
    db: AsyncSession,
    debtor_name: str,
    total_amount: Decimal,
    description: str | None = None,
    on_date: datetime.date | None = None,
    due_date: datetime.date | None = None,
) -> Receivable:
    """新建应收款：remaining = total_amount，状态 active"""
    if not debtor_name or not debtor_name.strip():
        raise ValidationError("Debtor name and amount are required")
    total = to_amount(total_amount)
    if total <= 0:
        raise ValidationError("Amount must be greater than 0")

    receivable = Receivable(
        debtor_name=debtor_name.strip(),
        total_amount=total,
        remaining=total,
        description=description,
        date=on_date or datetime.date.today(),
        due_date=due_date,
        status="active",
    )
    db.add(receivable)
    await db.flush()
    await db.refresh(receivable)
    return receivable


@unit_of_work
async def update_receivable(
    db: AsyncSession,
    receivable_id: str,
    debtor_name: str,
    total_amount: Decimal,
    description: str | None = None,
    on_date: datetime.date | None = None,
    due_date: datetime.date | None = None,
) -> Receivable:
    """修改应收款；总额变化时按已收金额重算 remaining 和状态，总额不得低于已收"""
    receivable = await db.get(Receivable, receivable_id)
    if not receivable:
        raise NotFoundError("Receivable not found")
    if not debtor_name or not debtor_name.strip():
        raise ValidationError("Debtor name and amount are required")
    total = to_amount(total_amount)
    if total <= 0:
        raise ValidationError("Amount must be greater than 0")

    paid = await _paid_amount(db, receivable_id)
    if total < paid:
        raise ValidationError("Total amount cannot be less than already paid amount")

    remaining = total - paid
    receivable.debtor_name = debtor_name.strip()
    receivable.total_amount = total
    receivable.remaining = remaining
    receivable.status = derive_receivable_status(remaining, total)
    receivable.description = description
    if on_date is not None:
        receivable.date = on_date
    receivable.due_date = due_date

    await db.flush()
    await db.refresh(receivable)
    return receivable


@unit_of_work
async def delete_receivable(db: AsyncSession, receivable_id: str) -> None:
    receivable = await db.get(Receivable, receivable_id)
    if not receivable:
        raise NotFoundError("Receivable not found")

    count_result = await db.execute(
        select(func.count()).select_from(ReceivablePayment).where(
            ReceivablePayment.receivable_id == receivable_id
        )
    )
    if count_result.scalar() > 0:
        raise ConflictError(
            "Cannot delete receivable with payment history. Delete payments first."
        )

    await db.delete(receivable)
    await db.flush()


# ─────────────────────── 收款登记 / 冲销 ───────────────────────


async def list_payments(
    db: AsyncSession, receivable_id: str | None = None
) -> list[ReceivablePayment]:
    stmt = select(ReceivablePayment)
    if receivable_id:
        stmt = stmt.where(ReceivablePayment.receivable_id == receivable_id)
    stmt = stmt.order_by(ReceivablePayment.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


@unit_of_work
async def apply_payment(
    db: AsyncSession,
    receivable_id: str,
    amount: Decimal,
    account_id: str,
    on_date: datetime.date | None = None,
    note: str | None = None,
) -> ReceivablePayment:
    """
    登记一笔收款（单事务）：
    1. 读取应收款（事务内重新读取，不信任调用方的旧值）
    2. 校验 0 < amount <= remaining
    3. 新 remaining、新状态
    4. 写收款记录
    5. 更新应收款（带版本号，并发冲突时整体重试）
    6. 写镜像收入，外键指回该收款
    """
    receivable = await db.get(Receivable, receivable_id, populate_existing=True)
    if not receivable:
        raise NotFoundError("Receivable not found")

    payment_amount = to_amount(amount)
    if payment_amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    if payment_amount > receivable.remaining:
        raise ValidationError("Payment amount exceeds remaining balance")

    account = await db.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found")

    new_remaining = to_money(receivable.remaining - payment_amount)
    new_status = derive_receivable_status(new_remaining, receivable.total_amount)
    payment_date = on_date or datetime.date.today()

    payment = ReceivablePayment(
        receivable_id=receivable_id,
        amount=payment_amount,
        account_id=account_id,
        date=payment_date,
        note=note,
    )
    db.add(payment)
    await db.flush()

    receivable.remaining = new_remaining
    receivable.status = new_status

    db.add(Income(
        title=mirrored_income_title(receivable.debtor_name),
        amount=payment_amount,
        account_id=account_id,
        date=payment_date,
        source="receivable_payment",
        receivable_payment_id=payment.id,
    ))
    await db.flush()
    await db.refresh(payment)

    logger.info(
        f"[收款] {receivable.debtor_name} 收款 {payment_amount} 入 {account.name}，"
        f"剩余 {new_remaining}（{new_status}）"
    )
    return payment


@unit_of_work
async def reverse_payment(db: AsyncSession, payment_id: str) -> None:
    """
    冲销一笔收款（单事务）：删镜像收入、删收款、remaining 加回并重算状态。
    remaining 回到 total 时状态为 active。
    """
    payment = await db.get(ReceivablePayment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    receivable = await db.get(Receivable, payment.receivable_id, populate_existing=True)
    if not receivable:
        raise NotFoundError("Receivable not found")

    mirrored = await db.execute(
        select(Income).where(Income.receivable_payment_id == payment.id)
    )
    for income in mirrored.scalars().all():
        await db.delete(income)
    await db.flush()

    await db.delete(payment)

    new_remaining = to_money(receivable.remaining + payment.amount)
    receivable.remaining = new_remaining
    receivable.status = derive_receivable_status(new_remaining, receivable.total_amount)
    await db.flush()

    logger.info(
        f"[收款] 冲销 {receivable.debtor_name} 收款 {payment.amount}，"
        f"剩余 {new_remaining}（{receivable.status}）"
    )
