"""
结账服务
串联订单结账和收银台销售额累计
"""

from decimal import Decimal
from typing import Optional

from ..models.order import Order, PaymentMethod
from .cash_register_service import CashRegisterService
from .order_service import OrderService


class PaymentService:
    """结账服务"""

    def __init__(self, order_service: OrderService, register_service: CashRegisterService,
                 require_open_register: bool = True):
        self.order_service = order_service
        self.register_service = register_service
        self.require_open_register = require_open_register

    def pay(self, order_id: str, payment_method: PaymentMethod,
            paid_amount: Optional[Decimal] = None, actor_id: Optional[str] = None) -> Order:
        """
        结账并累计销售额

        Raises:
            NoOpenRegisterError: 要求先开收银台而当前没有开启时
        """
        if self.require_open_register:
            self.register_service.require_current("请先开启收银台")

        # 订单结账和销售额累计要么都写入，要么都不写入
        with self.order_service.orders.store.transaction():
            order = self.order_service.pay_order(order_id, payment_method, paid_amount, actor_id)
            if self.register_service.current() is not None:
                self.register_service.record_sale(order.payment_method, order.total, order.id)
        return order
