"""数据库初始化 - SQLite + async SQLAlchemy"""

import functools
import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.DATABASE_URL, echo=False)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# 可重试的存储层异常：锁冲突 / 乐观锁版本不一致
TRANSIENT_ERRORS = (OperationalError, StaleDataError)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _log_retry(retry_state) -> None:
    logger.warning(
        f"[unit_of_work] {retry_state.fn.__name__ if retry_state.fn else 'call'} "
        f"第 {retry_state.attempt_number} 次失败，准备重试: {retry_state.outcome.exception()!r}"
    )


def unit_of_work(func):
    """
    把一个 `async def fn(db, ...)` 服务函数包装为单个事务：
    函数体成功则 commit，任何异常都 rollback，不留下部分写入。
    瞬时存储异常按 DB_RETRY_ATTEMPTS 有界重试，其余异常直接抛出。
    """

    @functools.wraps(func)
    async def wrapper(db: AsyncSession, *args, **kwargs):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.DB_RETRY_ATTEMPTS),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                try:
                    result = await func(db, *args, **kwargs)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
        return result

    return wrapper


async def init_db():
    """创建所有表，并在空库时灌入默认账户和分类"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    from finance_tracker.utils.seed import seed_defaults

    async with AsyncSessionLocal() as session:
        await seed_defaults(session)
        await session.commit()
