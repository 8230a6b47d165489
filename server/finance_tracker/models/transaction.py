import uuid
import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Date, ForeignKey, Text, Enum as SAEnum, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_tracker.database import Base
from finance_tracker.models.types import Money, utcnow


class Income(Base):
    __tablename__ = "income"
    __table_args__ = (
        Index("ix_income_account_date", "account_id", "date"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    # 收款镜像收入通过外键回指来源还款，冲销时按外键删除
    source: Mapped[str] = mapped_column(
        SAEnum("manual", "receivable_payment", name="income_source"),
        default="manual",
    )
    receivable_payment_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("receivable_payments.id"), nullable=True, unique=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow)

    # 关联
    account = relationship("Account")


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_account_date", "account_id", "date"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id"), nullable=False, index=True
    )
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow)

    # 关联
    account = relationship("Account")
    category = relationship("Category")


class Transfer(Base):
    __tablename__ = "transfers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    from_account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False, index=True
    )
    to_account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow)

    # 关联
    from_account = relationship("Account", foreign_keys=[from_account_id])
    to_account = relationship("Account", foreign_keys=[to_account_id])
