"""应收款 / 收款测试

覆盖：
- 收款登记：剩余额、状态、镜像收入
- 冲销收款：状态回退（不是停留在 paid）、镜像收入删除
- 边界：恰好还清 / 超出 0.01 / 不足一分的精度
- 并发收款不会超收
- 总额修改、删除约束
- API: /receivables, /receivables/payments
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from finance_tracker.database import Base
from finance_tracker.errors import ValidationError, NotFoundError, ConflictError
from finance_tracker.models.account import Account
from finance_tracker.models.receivable import ReceivablePayment
from finance_tracker.models.transaction import Income
from finance_tracker.services.balance_service import compute_account_balance
from finance_tracker.services.receivable_service import (
    create_receivable,
    update_receivable,
    delete_receivable,
    get_receivable,
    list_receivables,
    list_payments,
    apply_payment,
    reverse_payment,
)
from finance_tracker.services.transaction_service import (
    list_income,
    update_income,
    delete_income,
)
from finance_tracker.utils.seed import seed_defaults


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


class TestPaymentFlow:

    @pytest.mark.asyncio
    async def test_partial_full_then_reverse(self, db, cash_account):
        """100000 → 收 40000 → 收 60000 → 冲销第二笔，状态回到 partially_paid"""
        receivable = await create_receivable(db, "Alice", Decimal("100000"))
        assert receivable.status == "active"
        assert receivable.remaining == Decimal("100000")

        await apply_payment(db, receivable.id, Decimal("40000"), cash_account.id)
        receivable = await get_receivable(db, receivable.id)
        assert receivable.remaining == Decimal("60000")
        assert receivable.status == "partially_paid"

        second = await apply_payment(db, receivable.id, Decimal("60000"), cash_account.id)
        receivable = await get_receivable(db, receivable.id)
        assert receivable.remaining == 0
        assert receivable.status == "paid"

        await reverse_payment(db, second.id)
        receivable = await get_receivable(db, receivable.id)
        assert receivable.remaining == Decimal("60000")
        assert receivable.status == "partially_paid"
        assert len(receivable.payments) == 1

    @pytest.mark.asyncio
    async def test_overpayment_rejected_without_change(self, db, cash_account):
        """剩余 60000 时收 70000 → 拒绝，无任何写入"""
        receivable = await create_receivable(db, "Bob", Decimal("100000"))
        # 失败的调用会回滚并使会话内对象过期，先取出 id
        receivable_id = receivable.id
        await apply_payment(db, receivable_id, Decimal("40000"), cash_account.id)
        payments_before = await _count(db, ReceivablePayment)
        income_before = await _count(db, Income)

        with pytest.raises(ValidationError):
            await apply_payment(db, receivable_id, Decimal("70000"), cash_account.id)

        receivable = await get_receivable(db, receivable_id)
        assert receivable.remaining == Decimal("60000")
        assert receivable.status == "partially_paid"
        assert await _count(db, ReceivablePayment) == payments_before
        assert await _count(db, Income) == income_before

    @pytest.mark.asyncio
    async def test_exact_remaining_marks_paid(self, db, cash_account):
        receivable = await create_receivable(db, "Carol", Decimal("123.45"))
        await apply_payment(db, receivable.id, Decimal("123.45"), cash_account.id)
        receivable = await get_receivable(db, receivable.id)
        assert receivable.remaining == Decimal("0.00")
        assert receivable.status == "paid"

    @pytest.mark.asyncio
    async def test_one_cent_over_rejected(self, db, cash_account):
        receivable = await create_receivable(db, "Dan", Decimal("50"))
        with pytest.raises(ValidationError):
            await apply_payment(db, receivable.id, Decimal("50.01"), cash_account.id)

    @pytest.mark.asyncio
    async def test_sub_cent_amount_rejected(self, db, cash_account):
        """剩余 60000 时收 60000.004 → 拒绝，不做四舍五入"""
        receivable = await create_receivable(db, "Bea", Decimal("100000"))
        receivable_id = receivable.id
        await apply_payment(db, receivable_id, Decimal("40000"), cash_account.id)

        with pytest.raises(ValidationError):
            await apply_payment(db, receivable_id, Decimal("60000.004"), cash_account.id)

        receivable = await get_receivable(db, receivable_id)
        assert receivable.remaining == Decimal("60000")
        assert receivable.status == "partially_paid"
        assert len(receivable.payments) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    async def test_non_positive_rejected(self, db, cash_account, amount):
        receivable = await create_receivable(db, "Eve", Decimal("50"))
        with pytest.raises(ValidationError):
            await apply_payment(db, receivable.id, amount, cash_account.id)

    @pytest.mark.asyncio
    async def test_unknown_receivable_or_account(self, db, cash_account):
        with pytest.raises(NotFoundError):
            await apply_payment(db, "missing", Decimal("1"), cash_account.id)
        receivable = await create_receivable(db, "Frank", Decimal("50"))
        with pytest.raises(NotFoundError):
            await apply_payment(db, receivable.id, Decimal("1"), "missing")
        with pytest.raises(NotFoundError):
            await reverse_payment(db, "missing")


class TestMirroredIncome:

    @pytest.mark.asyncio
    async def test_payment_creates_linked_income(self, db, bank_account):
        receivable = await create_receivable(db, "Grace", Decimal("1000"))
        payment = await apply_payment(
            db, receivable.id, Decimal("400"), bank_account.id, on_date=date(2025, 4, 2)
        )

        incomes = await list_income(db)
        assert len(incomes) == 1
        income = incomes[0]
        assert income.title == "Payment received - Grace"
        assert income.amount == Decimal("400")
        assert income.account_id == bank_account.id
        assert income.date == date(2025, 4, 2)
        assert income.source == "receivable_payment"
        assert income.receivable_payment_id == payment.id
        assert await compute_account_balance(db, bank_account.id) == Decimal("400")

    @pytest.mark.asyncio
    async def test_round_trip_restores_state(self, db, bank_account):
        """收款后立即冲销：应收款状态、账户余额、收入列表都恢复原样"""
        receivable = await create_receivable(db, "Heidi", Decimal("1000"))
        await apply_payment(db, receivable.id, Decimal("300"), bank_account.id)
        receivable = await get_receivable(db, receivable.id)
        before = (receivable.remaining, receivable.status)
        balance_before = await compute_account_balance(db, bank_account.id)
        incomes_before = {i.id for i in await list_income(db)}

        payment = await apply_payment(db, receivable.id, Decimal("200"), bank_account.id)
        await reverse_payment(db, payment.id)

        receivable = await get_receivable(db, receivable.id)
        assert (receivable.remaining, receivable.status) == before
        assert await compute_account_balance(db, bank_account.id) == balance_before
        assert {i.id for i in await list_income(db)} == incomes_before

    @pytest.mark.asyncio
    async def test_reverse_only_payment_back_to_active(self, db, cash_account):
        receivable = await create_receivable(db, "Ivan", Decimal("80"))
        payment = await apply_payment(db, receivable.id, Decimal("80"), cash_account.id)
        await reverse_payment(db, payment.id)
        receivable = await get_receivable(db, receivable.id)
        assert receivable.remaining == Decimal("80")
        assert receivable.status == "active"
        assert await list_income(db) == []

    @pytest.mark.asyncio
    async def test_reverse_keeps_manual_income_with_same_title(self, db, cash_account):
        """只删除外键关联的镜像收入，同名手工收入保留"""
        from finance_tracker.services.transaction_service import create_income

        manual = await create_income(
            db, "Payment received - Judy", Decimal("25"), cash_account.id
        )
        receivable = await create_receivable(db, "Judy", Decimal("25"))
        payment = await apply_payment(db, receivable.id, Decimal("25"), cash_account.id)
        await reverse_payment(db, payment.id)

        assert [i.id for i in await list_income(db)] == [manual.id]

    @pytest.mark.asyncio
    async def test_mirrored_income_cannot_be_edited_directly(self, db, cash_account):
        receivable = await create_receivable(db, "Ken", Decimal("60"))
        await apply_payment(db, receivable.id, Decimal("10"), cash_account.id)
        income_id = (await list_income(db))[0].id

        with pytest.raises(ConflictError):
            await delete_income(db, income_id)
        with pytest.raises(ConflictError):
            await update_income(db, income_id, "x", Decimal("1"), cash_account.id)


class TestReceivableCrud:

    @pytest.mark.asyncio
    async def test_create_validation(self, db):
        with pytest.raises(ValidationError):
            await create_receivable(db, "  ", Decimal("10"))
        with pytest.raises(ValidationError):
            await create_receivable(db, "Leo", Decimal("0"))

    @pytest.mark.asyncio
    async def test_update_total_recomputes_status(self, db, cash_account):
        receivable = await create_receivable(db, "Mia", Decimal("100"))
        await apply_payment(db, receivable.id, Decimal("100"), cash_account.id)

        updated = await update_receivable(db, receivable.id, "Mia", Decimal("150"))
        assert updated.remaining == Decimal("50")
        assert updated.status == "partially_paid"

    @pytest.mark.asyncio
    async def test_update_total_below_paid_rejected(self, db, cash_account):
        receivable = await create_receivable(db, "Ned", Decimal("100"))
        await apply_payment(db, receivable.id, Decimal("70"), cash_account.id)
        with pytest.raises(ValidationError):
            await update_receivable(db, receivable.id, "Ned", Decimal("60"))

    @pytest.mark.asyncio
    async def test_delete_blocked_by_payments(self, db, cash_account):
        receivable = await create_receivable(db, "Olga", Decimal("100"))
        receivable_id = receivable.id
        payment = await apply_payment(db, receivable_id, Decimal("10"), cash_account.id)
        payment_id = payment.id
        with pytest.raises(ConflictError):
            await delete_receivable(db, receivable_id)

        await reverse_payment(db, payment_id)
        await delete_receivable(db, receivable_id)
        assert await list_receivables(db) == []

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, db, cash_account):
        paid = await create_receivable(db, "Pat", Decimal("10"))
        await create_receivable(db, "Quinn", Decimal("10"))
        await apply_payment(db, paid.id, Decimal("10"), cash_account.id)

        assert [r.debtor_name for r in await list_receivables(db, "paid")] == ["Pat"]
        assert [r.debtor_name for r in await list_receivables(db, "active")] == ["Quinn"]
        assert len(await list_payments(db, paid.id)) == 1


class TestReceivableApi:

    @pytest.mark.asyncio
    async def test_payment_lifecycle(self, client, auth_headers, cash_account):
        resp = await client.post(
            "/receivables",
            json={"debtorName": "Rita", "totalAmount": "100000", "dueDate": "2025-12-31"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        receivable_id = resp.json()["id"]
        assert resp.json()["status"] == "active"

        resp = await client.post(
            "/receivables/payments",
            json={"receivableId": receivable_id, "amount": "40000", "accountId": cash_account.id},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        payment_id = resp.json()["id"]

        resp = await client.post(
            "/receivables/payments",
            json={"receivableId": receivable_id, "amount": "70000", "accountId": cash_account.id},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

        resp = await client.get(
            "/receivables", params={"status": "partially_paid"}, headers=auth_headers
        )
        assert resp.status_code == 200
        items = resp.json()
        assert len(items) == 1
        assert Decimal(items[0]["remaining"]) == Decimal("60000")
        assert [p["id"] for p in items[0]["payments"]] == [payment_id]

        resp = await client.delete(
            "/receivables", params={"id": receivable_id}, headers=auth_headers
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "CONFLICT"

        resp = await client.delete(
            "/receivables/payments", params={"id": payment_id}, headers=auth_headers
        )
        assert resp.status_code == 200

        resp = await client.get("/income", headers=auth_headers)
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_update_via_put(self, client, auth_headers):
        resp = await client.post(
            "/receivables",
            json={"debtorName": "Sam", "totalAmount": "50"},
            headers=auth_headers,
        )
        receivable_id = resp.json()["id"]

        resp = await client.put(
            "/receivables",
            json={"id": receivable_id, "debtorName": "Samuel", "totalAmount": "75"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["debtorName"] == "Samuel"
        assert Decimal(data["remaining"]) == Decimal("75")
        assert data["payments"] == []

    @pytest.mark.asyncio
    async def test_unknown_receivable_payment(self, client, auth_headers, cash_account):
        resp = await client.post(
            "/receivables/payments",
            json={"receivableId": "missing", "amount": "1", "accountId": cash_account.id},
            headers=auth_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"


class TestConcurrentPayments:

    @pytest.mark.asyncio
    async def test_parallel_payments_cannot_exceed_total(self, tmp_path):
        """两个会话同时收 60（总额 100）：只有一笔成功，另一笔重读后被拒绝"""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        try:
            async with factory() as session:
                await seed_defaults(session)
                await session.commit()
                receivable = await create_receivable(session, "Race", Decimal("100"))
                receivable_id = receivable.id
                account_id = (await session.execute(
                    select(Account.id).where(Account.is_default.is_(True))
                )).scalar_one()

            async def pay():
                async with factory() as session:
                    return await apply_payment(
                        session, receivable_id, Decimal("60"), account_id
                    )

            results = await asyncio.gather(pay(), pay(), return_exceptions=True)

            assert sum(isinstance(r, ReceivablePayment) for r in results) == 1
            assert sum(isinstance(r, ValidationError) for r in results) == 1

            async with factory() as session:
                receivable = await get_receivable(session, receivable_id)
                paid = sum(p.amount for p in receivable.payments)
                assert paid <= receivable.total_amount
                assert receivable.remaining == Decimal("40")
                assert receivable.status == "partially_paid"
                assert len(await list_income(session)) == 1
        finally:
            await engine.dispose()
