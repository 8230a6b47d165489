"""
对账服务：按实际余额生成调节记录，使账面余额与实际一致
"""

import datetime
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import unit_of_work
from finance_tracker.errors import NotFoundError
from finance_tracker.models.account import Account
from finance_tracker.models.adjustment import Adjustment
from finance_tracker.services.balance_service import compute_account_balance, to_amount

logger = logging.getLogger(__name__)


@unit_of_work
async def reconcile(
    db: AsyncSession,
    account_id: str,
    actual_balance: Decimal,
    note: str | None = None,
    on_date: datetime.date | None = None,
) -> Adjustment:
    """
    记录实际余额：
    1. 计算全部历史的账面余额（含既往调节）作为 recorded_balance 快照
    2. difference = actual − recorded
    3. 写入调节记录，之后账面余额恰好等于 actual
    """
    account = await db.get(Account, account_id)
    if not account:
        raise NotFoundError("Account not found")

    actual = to_amount(actual_balance)
    recorded = await compute_account_balance(db, account_id)
    difference = actual - recorded

    adjustment = Adjustment(
        account_id=account_id,
        recorded_balance=recorded,
        actual_balance=actual,
        difference=difference,
        note=note,
        date=on_date or datetime.date.today(),
    )
    db.add(adjustment)
    await db.flush()
    await db.refresh(adjustment)

    logger.info(
        f"[对账] 账户 {account.name} 账面 {recorded} → 实际 {actual}，调节 {difference}"
    )
    return adjustment


async def list_adjustments(
    db: AsyncSession, account_id: str | None = None
) -> list[Adjustment]:
    stmt = select(Adjustment)
    if account_id:
        stmt = stmt.where(Adjustment.account_id == account_id)
    stmt = stmt.order_by(Adjustment.date.desc(), Adjustment.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


@unit_of_work
async def delete_adjustment(db: AsyncSession, adjustment_id: str) -> None:
    """删除一条历史调节。这是对历史的破坏性修改，不是对账的撤销：之后所有余额计算都会变化"""
    adjustment = await db.get(Adjustment, adjustment_id)
    if not adjustment:
        raise NotFoundError("Adjustment not found")

    logger.warning(
        f"[对账] 删除历史调节 {adjustment.id}（账户 {adjustment.account_id}，"
        f"差额 {adjustment.difference}），后续余额将随之改变"
    )
    await db.delete(adjustment)
    await db.flush()
