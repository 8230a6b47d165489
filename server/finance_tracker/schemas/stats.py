from decimal import Decimal

from finance_tracker.schemas.account import AccountBalanceItem
from finance_tracker.schemas.common import CamelModel


class CategoryStat(CamelModel):
    category_id: str
    category: str
    icon: str
    color: str
    total: Decimal
    count: int


class StatsResponse(CamelModel):
    month: int
    year: int
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    category_stats: list[CategoryStat]
    account_balances: list[AccountBalanceItem]
    total_balance: Decimal
    initial_balance: Decimal
    cumulative_balance: Decimal
    ytd_income: Decimal
    ytd_expenses: Decimal
    ytd_balance: Decimal
