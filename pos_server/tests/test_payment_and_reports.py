"""
结账与报表测试
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from pos_server.core.exceptions import DatabaseError, NoOpenRegisterError, ValidationError
from pos_server.models.order import OrderStatus, PaymentMethod


class TestPaymentService:

    def test_payment_requires_open_register(self, context, delivered_order):
        with pytest.raises(NoOpenRegisterError):
            context.payment_service.pay(delivered_order.id, PaymentMethod.CASH)
        assert context.order_service.get_order(delivered_order.id).status == OrderStatus.DELIVERED

    def test_payment_records_sale(self, context, delivered_order):
        context.register_service.open(Decimal("100.00"))
        order = context.payment_service.pay(delivered_order.id, PaymentMethod.CASH, Decimal("300"))

        assert order.status == OrderStatus.PAID
        session = context.register_service.current()
        assert session.cash_sales == Decimal("209.70")
        assert session.expected_cash == Decimal("309.70")

    def test_card_payment_goes_to_card_sales(self, context, delivered_order):
        context.register_service.open(Decimal("0"))
        context.payment_service.pay(delivered_order.id, PaymentMethod.DEBIT)
        session = context.register_service.current()
        assert session.card_sales == Decimal("209.70")
        assert session.cash_sales == Decimal("0")

    def test_payment_without_register_when_not_required(self, context, delivered_order):
        context.payment_service.require_open_register = False
        order = context.payment_service.pay(delivered_order.id, PaymentMethod.PIX)
        assert order.status == OrderStatus.PAID

    def test_failed_sale_rolls_back_payment(self, context, delivered_order, monkeypatch):
        context.register_service.open(Decimal("0"))

        def fail_sale(*args, **kwargs):
            raise DatabaseError("写入失败")

        monkeypatch.setattr(context.register_service, "record_sale", fail_sale)
        with pytest.raises(DatabaseError):
            context.payment_service.pay(delivered_order.id, PaymentMethod.CASH)

        order = context.order_service.get_order(delivered_order.id)
        assert order.status == OrderStatus.DELIVERED
        assert order.payment_method is None
        assert context.logs.find(action="order_pay", ref_id=delivered_order.id) == []


class TestReportService:

    def _paid_order(self, context, menu_item_id, quantity, created_at=None):
        service = context.order_service
        order = service.create_order("1", [service.build_item(menu_item_id, quantity)])
        if created_at is not None:
            # save 不改写 created_at，直接写存储
            context.store.update("orders", order.id, {"created_at": created_at})
        for status in (OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.DELIVERED):
            service.change_status(order.id, status)
        return service.pay_order(order.id, PaymentMethod.CREDIT)

    def test_sales_report_groups_by_day(self, context):
        yesterday = datetime.now() - timedelta(days=1)
        self._paid_order(context, "1", 1, created_at=yesterday)
        self._paid_order(context, "3", 1)
        self._paid_order(context, "2", 1)

        report = context.report_service.sales_report(yesterday.date(), date.today())
        assert [d["orders"] for d in report["days"]] == [1, 2]
        assert report["days"][1]["total"] == Decimal("139.80")
        assert report["totals"]["revenue"] == Decimal("229.70")
        assert report["totals"]["orders"] == 3
        assert report["totals"]["service_fees"] == Decimal("22.97")
        assert report["totals"]["average_ticket"] == Decimal("76.57")

    def test_unpaid_orders_excluded(self, context, delivered_order):
        report = context.report_service.sales_report(date.today(), date.today())
        assert report["days"] == []
        assert report["totals"]["revenue"] == Decimal("0.00")

    def test_invalid_range(self, context):
        with pytest.raises(ValidationError) as exc_info:
            context.report_service.sales_report(date.today(), date.today() - timedelta(days=1))
        assert exc_info.value.error_code == "INVALID_DATE_RANGE"

    def test_summary_skips_split_parents(self, context, delivered_order):
        assignments = [[(i.key, i.quantity) for i in delivered_order.items], []]
        first, second = context.split_service.split_order(delivered_order.id, assignments)
        context.order_service.pay_order(first.id, PaymentMethod.PIX)

        summary = context.report_service.summary()
        assert summary["revenue"] == Decimal("209.70")
        assert summary["pending_payments"] == Decimal("0.00")
        assert summary["paid_orders"] == 1
        assert summary["open_orders"] == 1

    def test_pending_payments_and_revenue(self, context, delivered_order):
        assert context.report_service.pending_payments() == Decimal("209.70")
        assert context.report_service.revenue() == Decimal("0")

        context.order_service.pay_order(delivered_order.id, PaymentMethod.CASH)
        assert context.report_service.pending_payments() == Decimal("0")
        assert context.report_service.revenue() == Decimal("209.70")
