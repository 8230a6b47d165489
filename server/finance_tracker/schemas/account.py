import datetime
from decimal import Decimal

from pydantic import Field

from finance_tracker.schemas.common import CamelModel

ACCOUNT_TYPE_PATTERN = r"^(cash|bank|ewallet)$"


class CreateAccountRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., pattern=ACCOUNT_TYPE_PATTERN)
    icon: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., min_length=1, max_length=20)
    initial_balance: Decimal = Field(Decimal("0"), max_digits=15, decimal_places=2)


class UpdateAccountRequest(CamelModel):
    id: str
    name: str | None = Field(None, min_length=1, max_length=100)
    type: str | None = Field(None, pattern=ACCOUNT_TYPE_PATTERN)
    icon: str | None = Field(None, min_length=1, max_length=50)
    color: str | None = Field(None, min_length=1, max_length=20)
    initial_balance: Decimal | None = Field(None, max_digits=15, decimal_places=2)


class AccountResponse(CamelModel):
    id: str
    name: str
    type: str
    icon: str
    color: str
    initial_balance: Decimal
    is_default: bool
    created_at: datetime.datetime


class AccountBalanceItem(CamelModel):
    account_id: str
    name: str
    type: str
    icon: str
    color: str
    is_default: bool
    balance: Decimal


class AccountBalancesResponse(CamelModel):
    as_of: datetime.date | None
    accounts: list[AccountBalanceItem]
    total_balance: Decimal
