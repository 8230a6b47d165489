import uuid
import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Date, ForeignKey, Integer, Text, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_tracker.database import Base
from finance_tracker.models.types import Money, utcnow


RECEIVABLE_STATUSES = ("active", "partially_paid", "paid")


class Receivable(Base):
    __tablename__ = "receivables"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    debtor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    remaining: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    due_date: Mapped[datetime.date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        SAEnum(*RECEIVABLE_STATUSES, name="receivable_status"),
        default="active",
        index=True,
    )
    # 乐观锁：并发还款时版本号不一致会抛 StaleDataError
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, default=utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    # 关联
    payments = relationship(
        "ReceivablePayment",
        back_populates="receivable",
        order_by="ReceivablePayment.created_at.desc()",
    )


class ReceivablePayment(Base):
    __tablename__ = "receivable_payments"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    receivable_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("receivables.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, default=utcnow
    )

    # 关联
    receivable = relationship("Receivable", back_populates="payments")
    account = relationship("Account")
