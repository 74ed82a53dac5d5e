"""
订单服务测试
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from pos_server.core.exceptions import (
    InsufficientPaymentError,
    InvalidTransitionError,
    OrderNotEditableError,
    OrderNotFoundError,
    ValidationError,
)
from pos_server.models.menu import MeatPoint
from pos_server.models.order import OrderStatus, PaymentMethod
from pos_server.services.order_lifecycle import OrderLifecycle


class TestCreateOrder:
    """下单"""

    def test_create_order_success(self, order_service):
        items = [
            order_service.build_item("1", 1, meat_point=MeatPoint.MEDIUM),
            order_service.build_item("2", 2, removed_items=["Purê"]),
        ]
        order = order_service.create_order("12", items, actor_id="waiter-1")

        assert order.status == OrderStatus.PENDING
        assert order.table_number == "12"
        assert order.total == Decimal("249.70")
        assert order.display_totals()["service_fee"] == Decimal("24.97")

        stored = order_service.get_order(order.id)
        assert stored.total == order.total
        assert stored.items[0].meat_point == MeatPoint.MEDIUM
        assert stored.items[1].removed_items == ("Purê",)

    def test_identical_lines_are_merged(self, order_service):
        items = [order_service.build_item("3", 1), order_service.build_item("3", 2)]
        order = order_service.create_order("1", items)
        assert len(order.items) == 1
        assert order.items[0].quantity == 3

    def test_empty_order_rejected(self, order_service):
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order("1", [])
        assert exc_info.value.error_code == "ORDER_ITEMS_REQUIRED"

    def test_blank_table_rejected(self, order_service):
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order("  ", [order_service.build_item("1")])
        assert exc_info.value.error_code == "TABLE_NUMBER_REQUIRED"

    def test_unknown_menu_item(self, order_service):
        with pytest.raises(ValidationError) as exc_info:
            order_service.build_item("99")
        assert exc_info.value.error_code == "MENU_ITEM_NOT_FOUND"

    def test_meat_point_only_for_meat(self, order_service):
        with pytest.raises(ValidationError) as exc_info:
            order_service.build_item("2", meat_point=MeatPoint.RARE)
        assert exc_info.value.error_code == "INVALID_CUSTOMIZATION"

    def test_removed_item_must_be_customizable(self, order_service):
        with pytest.raises(ValidationError) as exc_info:
            order_service.build_item("3", removed_items=["Farofa"])
        assert exc_info.value.error_code == "INVALID_CUSTOMIZATION"

    def test_create_is_logged(self, context):
        order = context.order_service.create_order("2", [context.order_service.build_item("1")],
                                                   actor_id="waiter-1")
        logs = context.logs.find(action="order_create", ref_id=order.id)
        assert len(logs) == 1
        assert logs[0]["actor_id"] == "waiter-1"
        assert logs[0]["detail_json"]["table_number"] == "2"


class TestEditItems:
    """待制作订单改菜"""

    def test_add_item_merges(self, order_service):
        order = order_service.create_order("1", [order_service.build_item("3", 1)])
        order = order_service.add_item(order.id, order_service.build_item("3", 1))
        assert order.items[0].quantity == 2
        assert order.total == Decimal("119.80")

    def test_adjust_and_remove(self, order_service):
        order = order_service.create_order("1", [
            order_service.build_item("1", 1),
            order_service.build_item("3", 2),
        ])
        carbonara_key = order.items[1].key
        order = order_service.adjust_item_quantity(order.id, carbonara_key, -1)
        assert order.items[1].quantity == 1
        order = order_service.remove_item(order.id, carbonara_key)
        assert [i.menu_item_id for i in order.items] == ["1"]
        assert order.total == Decimal("89.90")

    def test_cannot_remove_last_line(self, order_service):
        order = order_service.create_order("1", [order_service.build_item("1", 1)])
        with pytest.raises(ValidationError) as exc_info:
            order_service.adjust_item_quantity(order.id, order.items[0].key, -1)
        assert exc_info.value.error_code == "ORDER_ITEMS_REQUIRED"

    def test_only_pending_orders_are_editable(self, order_service):
        order = order_service.create_order("1", [order_service.build_item("1", 1)])
        order_service.change_status(order.id, OrderStatus.PREPARING)
        with pytest.raises(OrderNotEditableError):
            order_service.add_item(order.id, order_service.build_item("2", 1))


class TestStatusAndPayment:

    def test_full_lifecycle(self, order_service, delivered_order):
        paid = order_service.pay_order(delivered_order.id, PaymentMethod.CASH, Decimal("250.00"))
        assert paid.status == OrderStatus.PAID
        assert paid.payment_method == PaymentMethod.CASH
        assert paid.change == Decimal("40.30")

    def test_skip_status_rejected(self, order_service):
        order = order_service.create_order("1", [order_service.build_item("1", 1)])
        with pytest.raises(InvalidTransitionError):
            order_service.change_status(order.id, OrderStatus.DELIVERED)
        assert order_service.get_order(order.id).status == OrderStatus.PENDING

    def test_status_change_cannot_mark_paid(self, order_service, delivered_order):
        with pytest.raises(ValidationError) as exc_info:
            order_service.change_status(delivered_order.id, OrderStatus.PAID)
        assert exc_info.value.error_code == "PAYMENT_METHOD_REQUIRED"

    def test_pay_before_delivery_rejected(self, order_service):
        order = order_service.create_order("1", [order_service.build_item("1", 1)])
        with pytest.raises(InvalidTransitionError):
            order_service.pay_order(order.id, PaymentMethod.PIX)

    def test_insufficient_payment(self, order_service, delivered_order):
        with pytest.raises(InsufficientPaymentError):
            order_service.pay_order(delivered_order.id, PaymentMethod.CASH, Decimal("10"))
        assert order_service.get_order(delivered_order.id).status == OrderStatus.DELIVERED

    def test_paid_order_is_terminal(self, order_service, delivered_order):
        order_service.pay_order(delivered_order.id, PaymentMethod.CREDIT)
        with pytest.raises(InvalidTransitionError):
            order_service.cancel_order(delivered_order.id)
        with pytest.raises(InvalidTransitionError):
            order_service.pay_order(delivered_order.id, PaymentMethod.CREDIT)

    def test_permissive_mode_still_blocks_double_payment(self, order_service, delivered_order):
        order_service.lifecycle = OrderLifecycle(strict=False)
        order_service.pay_order(delivered_order.id, PaymentMethod.CREDIT)
        with pytest.raises(InvalidTransitionError):
            order_service.pay_order(delivered_order.id, PaymentMethod.CREDIT)

    def test_cancel_pending_order(self, order_service):
        order = order_service.create_order("1", [order_service.build_item("1", 1)])
        cancelled = order_service.cancel_order(order.id)
        assert cancelled.status == OrderStatus.CANCELLED

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFoundError):
            order_service.get_order("missing")


class TestKitchenQueue:

    def test_queue_groups_and_sorts(self, context, make_order):
        orders = context.order_service.orders
        now = datetime.now()
        orders.insert(make_order([("3", 1)], minutes_ago=2, order_id="a"))
        orders.insert(make_order([("1", 1)], minutes_ago=12, order_id="b"))
        orders.insert(make_order([("2", 1)], status=OrderStatus.PREPARING, minutes_ago=7, order_id="c"))
        orders.insert(make_order([("2", 1)], status=OrderStatus.READY, order_id="d"))

        queue = context.order_service.kitchen_queue(now)
        assert [e["order"].id for e in queue["pending"]] == ["b", "a"]
        assert [e["urgency"] for e in queue["pending"]] == ["late", "ok"]
        assert queue["preparing"][0]["urgency"] == "attention"
        assert queue["preparing"][0]["estimated_prep_time"] == 20

    def test_estimated_prep_time_is_longest_item(self, order_service):
        order = order_service.create_order("1", [
            order_service.build_item("3", 1),
            order_service.build_item("1", 1),
        ])
        assert order_service.estimated_prep_time(order) == 25

    def test_elapsed_minutes(self, context, make_order):
        context.order_service.orders.insert(make_order([("1", 1)], minutes_ago=0, order_id="x"))
        queue = context.order_service.kitchen_queue(datetime.now() + timedelta(minutes=6))
        assert queue["pending"][0]["elapsed_minutes"] == 6
