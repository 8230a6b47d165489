"""余额引擎测试

- 账户余额 = 初始余额 + 收入 − 支出 + 转入 − 转出 + 调节
- 截止日期只统计前缀流水
- 随机流水序列与手工求和一致
- 应收款状态推导（纯函数）
"""

import random
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text

from finance_tracker.errors import NotFoundError, ValidationError
from finance_tracker.services.account_service import create_account
from finance_tracker.services.balance_service import (
    compute_account_balance,
    compute_account_balances,
    compute_receivable_state,
    derive_receivable_status,
    total_balance,
)
from finance_tracker.services.transaction_service import (
    create_income,
    create_expense,
    create_transfer,
)


class TestComputeAccountBalance:

    @pytest.mark.asyncio
    async def test_income_expense_transfer(self, db, food_category, bank_account):
        """初始 500000 + 收入 200000 − 支出 50000 − 转出 30000 = 620000"""
        account = await create_account(
            db, "Savings", "bank", "🏦", "#123456", Decimal("500000")
        )
        await create_income(db, "Salary", Decimal("200000"), account.id, date(2025, 1, 5))
        await create_expense(
            db, "Groceries", Decimal("50000"), food_category.id,
            account_id=account.id, on_date=date(2025, 1, 6),
        )
        await create_transfer(
            db, account.id, bank_account.id, Decimal("30000"), on_date=date(2025, 1, 7)
        )

        assert await compute_account_balance(db, account.id) == Decimal("620000.00")
        assert await compute_account_balance(db, bank_account.id) == Decimal("30000.00")

    @pytest.mark.asyncio
    async def test_empty_account_is_initial_balance(self, db):
        account = await create_account(db, "Wallet", "ewallet", "📱", "#000", Decimal("12.34"))
        assert await compute_account_balance(db, account.id) == Decimal("12.34")

    @pytest.mark.asyncio
    async def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            await compute_account_balance(db, "missing-account")

    @pytest.mark.asyncio
    async def test_as_of_counts_prefix_only(self, db, cash_account):
        """as_of 当天的流水计入，之后的不计入"""
        await create_income(db, "Jan", Decimal("100"), cash_account.id, date(2025, 1, 31))
        await create_income(db, "Feb", Decimal("40"), cash_account.id, date(2025, 2, 1))

        assert await compute_account_balance(db, cash_account.id, date(2024, 12, 31)) == 0
        assert await compute_account_balance(db, cash_account.id, date(2025, 1, 31)) == Decimal("100")
        assert await compute_account_balance(db, cash_account.id) == Decimal("140")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", [1, 7, 42])
    async def test_random_history_matches_manual_sum(
        self, db, seed, cash_account, bank_account, food_category
    ):
        """随机收入/支出/转账序列，余额与手工逐笔求和一致，且两账户互不串账"""
        rng = random.Random(seed)
        expected = {cash_account.id: Decimal("0"), bank_account.id: Decimal("0")}
        ids = list(expected)

        for i in range(30):
            amount = Decimal(rng.randint(1, 100000)) / 100
            kind = rng.choice(["income", "expense", "transfer"])
            on = date(2025, 1, 1 + i % 28)
            if kind == "income":
                target = rng.choice(ids)
                await create_income(db, f"in {i}", amount, target, on)
                expected[target] += amount
            elif kind == "expense":
                target = rng.choice(ids)
                await create_expense(
                    db, f"out {i}", amount, food_category.id, account_id=target, on_date=on
                )
                expected[target] -= amount
            else:
                src, dst = rng.sample(ids, 2)
                await create_transfer(db, src, dst, amount, on_date=on)
                expected[src] -= amount
                expected[dst] += amount

        for account_id, value in expected.items():
            assert await compute_account_balance(db, account_id) == value

        balances = await compute_account_balances(db)
        by_id = {b.account.id: b.balance for b in balances}
        assert by_id[cash_account.id] == expected[cash_account.id]
        assert by_id[bank_account.id] == expected[bank_account.id]
        assert total_balance(balances) == sum(expected.values())


class TestComputeAccountBalances:

    @pytest.mark.asyncio
    async def test_default_account_first(self, db):
        """默认账户排第一，其余按创建时间"""
        await create_account(db, "Zeta", "bank", "🏦", "#111")
        balances = await compute_account_balances(db)
        assert balances[0].account.is_default is True
        assert balances[0].account.name == "Cash"
        assert balances[-1].account.name == "Zeta"

    @pytest.mark.asyncio
    async def test_transfer_nets_to_zero_in_total(self, db, cash_account, bank_account):
        await create_income(db, "Seed", Decimal("1000"), cash_account.id, date(2025, 3, 1))
        before = total_balance(await compute_account_balances(db))
        await create_transfer(db, cash_account.id, bank_account.id, Decimal("250"))
        after = total_balance(await compute_account_balances(db))
        assert before == after == Decimal("1000")


class TestMoneyStorage:

    @pytest.mark.asyncio
    async def test_amounts_stored_as_integer_cents(self, db, cash_account):
        """金额按整数分入库，0.1 + 0.2 的累加没有浮点误差"""
        await create_income(db, "a", Decimal("0.1"), cash_account.id)
        await create_income(db, "b", Decimal("0.2"), cash_account.id)

        result = await db.execute(text("SELECT DISTINCT typeof(amount) FROM income"))
        stored = result.scalars().all()
        assert stored == ["integer"]
        cents = (await db.execute(text("SELECT SUM(amount) FROM income"))).scalar()
        assert cents == 30
        assert await compute_account_balance(db, cash_account.id) == Decimal("0.30")

    @pytest.mark.asyncio
    async def test_sub_cent_input_rejected(self, db, cash_account):
        with pytest.raises(ValidationError):
            await create_income(db, "c", Decimal("10.001"), cash_account.id)
        with pytest.raises(ValidationError):
            await create_account(db, "Odd", "cash", "💵", "#000000", Decimal("1.005"))


class TestReceivableStatus:

    def test_derive_status(self):
        assert derive_receivable_status(Decimal("0"), Decimal("100")) == "paid"
        assert derive_receivable_status(Decimal("0.01"), Decimal("100")) == "partially_paid"
        assert derive_receivable_status(Decimal("100"), Decimal("100")) == "active"

    def test_compute_state_from_payments(self):
        state = compute_receivable_state(Decimal("100000"), [Decimal("40000")])
        assert state.remaining == Decimal("60000")
        assert state.status == "partially_paid"

        state = compute_receivable_state(Decimal("100000"), [Decimal("40000"), Decimal("60000")])
        assert state.remaining == 0
        assert state.status == "paid"

        state = compute_receivable_state(Decimal("100000"), [])
        assert state.status == "active"
