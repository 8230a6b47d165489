from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.account import (
    CreateAccountRequest,
    UpdateAccountRequest,
    AccountResponse,
    AccountBalanceItem,
    AccountBalancesResponse,
)
from finance_tracker.schemas.common import MessageResponse
from finance_tracker.services.account_service import (
    list_accounts,
    create_account,
    update_account,
    delete_account,
)
from finance_tracker.services.balance_service import compute_account_balances, total_balance
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["账户"], dependencies=[Depends(get_current_user)])


@router.get("/accounts", response_model=list[AccountResponse], summary="账户列表")
async def get_accounts(db: AsyncSession = Depends(get_db)):
    """默认账户在前，其余按创建时间升序"""
    accounts = await list_accounts(db)
    return [AccountResponse.model_validate(a) for a in accounts]


@router.get(
    "/accounts/balances",
    response_model=AccountBalancesResponse,
    summary="各账户余额",
)
async def get_account_balances(
    as_of: date | None = Query(None, alias="asOf", description="截止日期，默认全部历史"),
    db: AsyncSession = Depends(get_db),
):
    balances = await compute_account_balances(db, as_of=as_of)
    return AccountBalancesResponse(
        as_of=as_of,
        accounts=[
            AccountBalanceItem(
                account_id=b.account.id,
                name=b.account.name,
                type=b.account.type,
                icon=b.account.icon,
                color=b.account.color,
                is_default=b.account.is_default,
                balance=b.balance,
            )
            for b in balances
        ],
        total_balance=total_balance(balances),
    )


@router.post(
    "/accounts",
    response_model=AccountResponse,
    status_code=201,
    summary="新增账户",
)
async def post_account(body: CreateAccountRequest, db: AsyncSession = Depends(get_db)):
    account = await create_account(
        db,
        name=body.name,
        acc_type=body.type,
        icon=body.icon,
        color=body.color,
        initial_balance=body.initial_balance,
    )
    return AccountResponse.model_validate(account)


@router.put("/accounts", response_model=AccountResponse, summary="编辑账户")
async def put_account(body: UpdateAccountRequest, db: AsyncSession = Depends(get_db)):
    account = await update_account(
        db,
        body.id,
        name=body.name,
        acc_type=body.type,
        icon=body.icon,
        color=body.color,
        initial_balance=body.initial_balance,
    )
    return AccountResponse.model_validate(account)


@router.delete("/accounts", response_model=MessageResponse, summary="删除账户")
async def remove_account(id: str = Query(...), db: AsyncSession = Depends(get_db)):
    """默认账户、有流水引用的账户不可删除"""
    await delete_account(db, id)
    return MessageResponse(message="Account deleted successfully")
