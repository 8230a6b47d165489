import uuid
import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_tracker.database import Base
from finance_tracker.models.types import Money, utcnow


class Adjustment(Base):
    """对账调节记录：只追加，recorded_balance 为创建时的账面余额快照"""

    __tablename__ = "adjustments"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False, index=True
    )
    recorded_balance: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    actual_balance: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    difference: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow)

    # 关联
    account = relationship("Account")


class InitialBalance(Base):
    """全局期初余额日志：按 created_at 最新的一行生效，旧行保留为历史"""

    __tablename__ = "initial_balances"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, default=utcnow, index=True
    )
