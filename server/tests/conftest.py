"""测试公共 Fixtures：每个测试独立的内存 SQLite + AsyncClient"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from finance_tracker.config import settings
from finance_tracker.database import Base, get_db
from finance_tracker.models.account import Account
from finance_tracker.models.category import Category
from finance_tracker.utils.security import create_access_token
from finance_tracker.utils.seed import seed_defaults

import finance_tracker.models  # noqa: F401


# ──────────── 内存数据库引擎 ────────────

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def session_factory():
    """每个测试一个新引擎：建表 + 灌默认账户/分类，结束后释放"""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_defaults(session)
        await session.commit()

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


# ──────────── FastAPI TestClient ────────────

@pytest_asyncio.fixture
async def client(session_factory):
    from finance_tracker.main import app

    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers() -> dict:
    token = create_access_token(settings.AUTH_USERNAME)
    return {"Authorization": f"Bearer {token}"}


# ──────────── 预置账户 / 分类 ────────────

async def _account_by_name(session_factory, name: str) -> Account:
    async with session_factory() as session:
        result = await session.execute(select(Account).where(Account.name == name))
        return result.scalar_one()


@pytest_asyncio.fixture
async def cash_account(session_factory) -> Account:
    """默认账户 Cash"""
    return await _account_by_name(session_factory, "Cash")


@pytest_asyncio.fixture
async def bank_account(session_factory) -> Account:
    return await _account_by_name(session_factory, "Bank")


@pytest_asyncio.fixture
async def food_category(session_factory) -> Category:
    async with session_factory() as session:
        result = await session.execute(
            select(Category).where(Category.name == "Food & Drinks")
        )
        return result.scalar_one()
