import datetime
from decimal import Decimal

from pydantic import Field

from finance_tracker.schemas.common import CamelModel


class AdjustmentCreate(CamelModel):
    account_id: str
    actual_balance: Decimal = Field(..., max_digits=15, decimal_places=2)
    note: str | None = None
    date: datetime.date | None = None


class AdjustmentResponse(CamelModel):
    id: str
    account_id: str
    recorded_balance: Decimal
    actual_balance: Decimal
    difference: Decimal
    note: str | None
    date: datetime.date
    created_at: datetime.datetime


class InitialBalanceCreate(CamelModel):
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    note: str | None = None


class InitialBalanceResponse(CamelModel):
    id: str | None = None
    amount: Decimal
    note: str | None = None
    created_at: datetime.datetime | None = None
