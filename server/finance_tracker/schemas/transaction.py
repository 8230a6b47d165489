import datetime
from decimal import Decimal

from pydantic import Field

from finance_tracker.schemas.common import CamelModel


# ---- 收入 ----

class IncomeCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    account_id: str
    date: datetime.date | None = Field(None, description="默认今天")


class IncomeUpdate(IncomeCreate):
    id: str


class IncomeResponse(CamelModel):
    id: str
    title: str
    amount: Decimal
    account_id: str
    date: datetime.date
    source: str
    receivable_payment_id: str | None
    created_at: datetime.datetime


# ---- 支出 ----

class ExpenseCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    category_id: str
    account_id: str | None = Field(None, description="缺省时记入默认账户")
    date: datetime.date | None = None
    description: str | None = None


class ExpenseUpdate(ExpenseCreate):
    id: str


class ExpenseResponse(CamelModel):
    id: str
    title: str
    amount: Decimal
    category_id: str
    account_id: str
    date: datetime.date
    description: str | None
    created_at: datetime.datetime


# ---- 转账 ----

class TransferCreate(CamelModel):
    from_account_id: str
    to_account_id: str
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    date: datetime.date | None = None
    note: str | None = None


class TransferResponse(CamelModel):
    id: str
    from_account_id: str
    to_account_id: str
    amount: Decimal
    date: datetime.date
    note: str | None
    created_at: datetime.datetime
