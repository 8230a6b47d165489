import datetime
from decimal import Decimal

from pydantic import Field

from finance_tracker.schemas.common import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., min_length=1, max_length=20)


class CategoryUpdate(CategoryCreate):
    id: str


class CategoryResponse(CamelModel):
    id: str
    name: str
    icon: str
    color: str
    created_at: datetime.datetime


class BudgetUpsert(CamelModel):
    category_id: str
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)


class BudgetResponse(CamelModel):
    id: str
    category_id: str
    amount: Decimal
    month: int
    year: int
    category: CategoryResponse | None = None
