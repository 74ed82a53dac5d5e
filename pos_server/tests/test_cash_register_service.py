"""
收银台服务测试
"""

from decimal import Decimal

import pytest

from pos_server.core.exceptions import (
    NoOpenRegisterError,
    RegisterAlreadyOpenError,
    ValidationError,
)
from pos_server.models.cash_register import CashRegisterStatus
from pos_server.models.order import PaymentMethod


class TestCashRegisterService:

    def test_open_register(self, register_service):
        session = register_service.open(Decimal("100.00"), "turno da manhã", actor_id="cashier-1")
        assert session.status == CashRegisterStatus.OPEN
        assert session.initial_amount == Decimal("100.00")
        assert register_service.current().id == session.id

    def test_second_open_fails_regardless_of_amount(self, register_service):
        register_service.open(Decimal("100.00"))
        with pytest.raises(RegisterAlreadyOpenError):
            register_service.open(Decimal("0"))

    def test_negative_initial_amount(self, register_service):
        with pytest.raises(ValidationError) as exc_info:
            register_service.open(Decimal("-1"))
        assert exc_info.value.error_code == "INVALID_AMOUNT"

    def test_close_computes_difference(self, register_service):
        """100 初始 + 250 现金销售，清点 360，差额 10"""
        register_service.open(Decimal("100.00"))
        register_service.record_sale(PaymentMethod.CASH, Decimal("250.00"))
        closed = register_service.close(Decimal("360.00"))

        assert closed.status == CashRegisterStatus.CLOSED
        assert closed.difference == Decimal("10.00")
        assert closed.closed_at is not None
        assert register_service.current() is None

    def test_close_without_open_register(self, register_service):
        with pytest.raises(NoOpenRegisterError):
            register_service.close(Decimal("0"))

    def test_reopen_after_close(self, register_service):
        first = register_service.open(Decimal("50"))
        register_service.close(Decimal("50"))
        second = register_service.open(Decimal("80"))
        assert second.id != first.id
        history = register_service.history()
        assert [s.id for s in history] == [second.id, first.id]

    def test_sales_accumulate_by_method(self, register_service):
        register_service.open(Decimal("0"))
        register_service.record_sale(PaymentMethod.CREDIT, Decimal("10.00"))
        register_service.record_sale(PaymentMethod.DEBIT, Decimal("5.50"))
        register_service.record_sale(PaymentMethod.PIX, Decimal("7.00"))
        session = register_service.record_sale(PaymentMethod.MEAL_TICKET, Decimal("3.00"))

        assert session.card_sales == Decimal("15.50")
        assert session.pix_sales == Decimal("7.00")
        assert session.meal_ticket_sales == Decimal("3.00")
        assert session.cash_sales == Decimal("0")

    def test_record_sale_requires_open_register(self, register_service):
        with pytest.raises(NoOpenRegisterError):
            register_service.record_sale(PaymentMethod.CASH, Decimal("1.00"))

    def test_operations_are_logged(self, context):
        session = context.register_service.open(Decimal("20"), actor_id="cashier-1")
        context.register_service.close(Decimal("20"), actor_id="cashier-1")
        actions = [log["action"] for log in context.logs.find(ref_id=session.id)]
        assert sorted(actions) == ["register_close", "register_open"]
