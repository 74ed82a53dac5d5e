"""
报表服务
按日汇总已结账订单的营业额、单数、服务费和客单价
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict

from ..core.exceptions import ValidationError
from ..models.base import money_display
from ..models.order import OrderStatus
from .repositories import OrderRepository


class ReportService:
    """报表服务"""

    def __init__(self, orders: OrderRepository):
        self.orders = orders

    def sales_report(self, start_date: date, end_date: date) -> Dict[str, Any]:
        """
        销售报表

        Args:
            start_date: 开始日期（含）
            end_date: 结束日期（含，截止到 23:59:59）

        Returns:
            dict: days 为按日期升序的每日汇总，totals 为区间汇总
        """
        if end_date < start_date:
            raise ValidationError("结束日期不能早于开始日期", "INVALID_DATE_RANGE")

        paid = self.orders.find(
            status=OrderStatus.PAID,
            created_from=datetime.combine(start_date, time.min),
            created_to=datetime.combine(end_date, time(23, 59, 59)),
        )

        days: Dict[date, Dict[str, Any]] = {}
        for order in paid:
            day = order.created_at.date()
            bucket = days.setdefault(day, {
                "date": day,
                "total": Decimal("0"),
                "orders": 0,
                "service_fees": Decimal("0"),
            })
            bucket["total"] += order.total
            bucket["orders"] += 1
            bucket["service_fees"] += order.service_fee

        daily = [days[d] for d in sorted(days)]
        revenue = sum((d["total"] for d in daily), Decimal("0"))
        count = sum(d["orders"] for d in daily)
        fees = sum((d["service_fees"] for d in daily), Decimal("0"))
        average = revenue / count if count else Decimal("0")

        return {
            "days": [
                {
                    "date": d["date"],
                    "total": money_display(d["total"]),
                    "orders": d["orders"],
                    "service_fees": money_display(d["service_fees"]),
                }
                for d in daily
            ],
            "totals": {
                "revenue": money_display(revenue),
                "orders": count,
                "service_fees": money_display(fees),
                "average_ticket": money_display(average),
            },
        }

    def revenue(self) -> Decimal:
        """已结账订单金额合计（未舍入）"""
        return sum((o.total for o in self.orders.find(status=OrderStatus.PAID)), Decimal("0"))

    def pending_payments(self) -> Decimal:
        """已上桌待结账金额合计，已分账的父订单由子订单计入"""
        delivered = self.orders.find(status=OrderStatus.DELIVERED)
        split_parents = self._split_parent_ids()
        return sum((o.total for o in delivered if o.id not in split_parents), Decimal("0"))

    def summary(self) -> Dict[str, Any]:
        """收银面板汇总"""
        split_parents = self._split_parent_ids()
        orders = self.orders.find()
        return {
            "revenue": money_display(self.revenue()),
            "pending_payments": money_display(self.pending_payments()),
            "open_orders": sum(1 for o in orders if not o.is_terminal and o.id not in split_parents),
            "paid_orders": sum(1 for o in orders if o.status == OrderStatus.PAID),
        }

    def _split_parent_ids(self):
        return self.orders.split_parent_ids()
