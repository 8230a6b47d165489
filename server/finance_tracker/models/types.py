"""列类型与默认值工具"""

import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

CENT = Decimal("0.01")


def utcnow() -> datetime.datetime:
    """不带时区的 UTC 当前时间（DateTime 列按 naive UTC 存储）"""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class Money(TypeDecorator):
    """
    金额列：库内存整数分，读出为两位小数的 Decimal。
    SQLite 没有定点小数类型，存整数才能保证 SUM 聚合精确。
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        cents = Decimal(str(value)) * 100
        return int(cents.to_integral_value(rounding=ROUND_HALF_UP))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return (Decimal(int(value)) / 100).quantize(CENT)

    @property
    def python_type(self):
        return Decimal
