"""应收款 / 收款 Pydantic Schema"""

import datetime
from decimal import Decimal

from pydantic import Field

from finance_tracker.schemas.common import CamelModel


class ReceivableCreate(CamelModel):
    debtor_name: str = Field(..., min_length=1, max_length=200)
    total_amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    description: str | None = None
    date: datetime.date | None = Field(None, description="默认今天")
    due_date: datetime.date | None = None


class ReceivableUpdate(ReceivableCreate):
    id: str


class PaymentCreate(CamelModel):
    receivable_id: str
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    account_id: str
    date: datetime.date | None = Field(None, description="默认今天")
    note: str | None = None


class PaymentResponse(CamelModel):
    id: str
    receivable_id: str
    amount: Decimal
    account_id: str
    date: datetime.date
    note: str | None
    created_at: datetime.datetime


class ReceivableResponse(CamelModel):
    id: str
    debtor_name: str
    total_amount: Decimal
    remaining: Decimal
    description: str | None
    date: datetime.date
    due_date: datetime.date | None
    status: str
    created_at: datetime.datetime


class ReceivableDetailResponse(ReceivableResponse):
    payments: list[PaymentResponse] = []
