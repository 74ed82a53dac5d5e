"""
订单服务模块
提供订单相关的核心业务逻辑，包括下单、改菜、状态流转、结账和厨房队列

主要功能：
- 订单创建（相同定制的菜品自动合并）
- 待制作订单的菜品增减和删除
- 状态流转校验（见 order_lifecycle）
- 结账：记录支付方式、实收金额和找零
- 厨房队列：待制作/制作中订单按下单时间排序

业务规则：
- 金额全部由菜品行推导，任何修改后总额都等于 Σ 单价 × 数量
- 只有 pending 状态的订单可以修改菜品
- 修改先在副本上完成，存储写入成功后才返回新状态
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core.exceptions import (
    InsufficientPaymentError,
    InvalidTransitionError,
    OrderNotEditableError,
    OrderNotFoundError,
    ValidationError,
)
from ..models.menu import MeatPoint, MenuCatalog
from ..models.order import ItemKey, Order, OrderItem, OrderStatus, PaymentMethod
from . import item_matcher
from .order_lifecycle import OrderLifecycle
from .repositories import OperationLogRepository, OrderRepository, new_id


# 厨房等待时间分级（分钟）
URGENCY_ATTENTION_MINUTES = 5
URGENCY_LATE_MINUTES = 10


class OrderService:
    """订单服务类，封装所有订单相关的业务逻辑"""

    def __init__(self, orders: OrderRepository, logs: OperationLogRepository,
                 catalog: MenuCatalog, lifecycle: OrderLifecycle):
        self.orders = orders
        self.logs = logs
        self.catalog = catalog
        self.lifecycle = lifecycle

    def build_item(self, menu_item_id: str, quantity: int = 1, notes: str = "",
                   meat_point: Optional[MeatPoint] = None,
                   removed_items: Optional[List[str]] = None) -> OrderItem:
        """
        根据菜单生成订单菜品行

        Raises:
            ValidationError: 菜品不存在、数量非法、熟度或去除配料不合法时
        """
        menu_item = self.catalog.get(menu_item_id)
        if menu_item is None:
            raise ValidationError(f"菜品不存在: {menu_item_id}", "MENU_ITEM_NOT_FOUND",
                                  {"menu_item_id": menu_item_id})
        if quantity < 1:
            raise ValidationError("数量必须大于0", "INVALID_QUANTITY")
        try:
            return OrderItem.from_menu_item(menu_item, quantity, notes, meat_point, removed_items)
        except ValueError as e:
            raise ValidationError(str(e), "INVALID_CUSTOMIZATION", {"menu_item_id": menu_item_id})

    def create_order(self, table_number: str, items: List[OrderItem],
                     actor_id: Optional[str] = None) -> Order:
        """
        创建新订单

        Args:
            table_number: 桌号（字符串标签）
            items: 菜品行，相同身份的行会被合并
            actor_id: 操作员工ID

        Returns:
            Order: 已保存的订单，状态为 pending

        Raises:
            ValidationError: 桌号为空或没有菜品时
        """
        table_number = (table_number or "").strip()
        if not table_number:
            raise ValidationError("请填写桌号", "TABLE_NUMBER_REQUIRED")
        if not items:
            raise ValidationError("订单至少需要一个菜品", "ORDER_ITEMS_REQUIRED")

        now = datetime.now()
        order = Order(
            id=new_id(),
            table_number=table_number,
            items=item_matcher.merge_all(items),
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
            service_fee_rate=self.orders.service_fee_rate,
        )
        saved = self.orders.insert(order)

        self._log(actor_id, "order_create", saved, {
            "table_number": saved.table_number,
            "items": len(saved.items),
            "total": str(saved.total),
        })
        return saved

    def get_order(self, order_id: str) -> Order:
        """获取订单，不存在时抛出 OrderNotFoundError"""
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list_orders(self, status: Optional[Any] = None,
                    table_number: Optional[str] = None) -> List[Order]:
        return self.orders.find(status=status, table_number=table_number)

    def list_split_children(self, parent_order_id: str) -> List[Order]:
        return self.orders.find(parent_order_id=parent_order_id)

    def add_item(self, order_id: str, item: OrderItem, actor_id: Optional[str] = None) -> Order:
        """向待制作订单加菜"""
        order = self._get_editable(order_id)
        items = item_matcher.merge_or_append(order.items, item)
        return self._save_items(order, items, actor_id, "order_item_add", {
            "menu_item_id": item.menu_item_id,
            "quantity": item.quantity,
        })

    def adjust_item_quantity(self, order_id: str, key: ItemKey, delta: int,
                             actor_id: Optional[str] = None) -> Order:
        """增减菜品数量，减到0时删除该行；找不到对应行时不做修改"""
        order = self._get_editable(order_id)
        items = item_matcher.adjust_quantity(order.items, key, delta)
        if not items:
            raise ValidationError("订单至少需要一个菜品，如需作废请取消订单", "ORDER_ITEMS_REQUIRED")
        return self._save_items(order, items, actor_id, "order_item_adjust", {
            "menu_item_id": key[0],
            "delta": delta,
        })

    def remove_item(self, order_id: str, key: ItemKey, actor_id: Optional[str] = None) -> Order:
        """删除菜品行"""
        order = self._get_editable(order_id)
        items = item_matcher.remove(order.items, key)
        if not items:
            raise ValidationError("订单至少需要一个菜品，如需作废请取消订单", "ORDER_ITEMS_REQUIRED")
        return self._save_items(order, items, actor_id, "order_item_remove", {
            "menu_item_id": key[0],
        })

    def change_status(self, order_id: str, status: OrderStatus,
                      actor_id: Optional[str] = None) -> Order:
        """
        修改订单状态

        Raises:
            OrderNotFoundError: 订单不存在时
            ValidationError: 直接写入 paid（必须走结账流程）或订单已分账时
            InvalidTransitionError: 严格模式下转换不合法时
        """
        status = OrderStatus(status)
        if status == OrderStatus.PAID:
            raise ValidationError("结账请使用支付接口并指定支付方式", "PAYMENT_METHOD_REQUIRED")

        order = self.get_order(order_id)
        self._ensure_not_split(order)
        previous = order.status
        self.lifecycle.validate(previous, status)

        updated = order.model_copy(update={"status": status, "updated_at": datetime.now()})
        saved = self.orders.save(updated)

        self._log(actor_id, "order_status_change", saved, {
            "from": previous.value,
            "to": status.value,
        })
        return saved

    def cancel_order(self, order_id: str, actor_id: Optional[str] = None) -> Order:
        """取消订单（任意非终态可取消）"""
        return self.change_status(order_id, OrderStatus.CANCELLED, actor_id)

    def pay_order(self, order_id: str, payment_method: PaymentMethod,
                  paid_amount: Optional[Decimal] = None,
                  actor_id: Optional[str] = None) -> Order:
        """
        结账

        Args:
            order_id: 订单ID
            payment_method: 支付方式（必填）
            paid_amount: 实收金额，提供时计算找零

        Raises:
            OrderNotFoundError: 订单不存在时
            InvalidTransitionError: 订单未上桌或已处于终态时
            ValidationError: 订单已分账（应分别结算子订单）时
            InsufficientPaymentError: 实收金额小于订单金额时
        """
        if payment_method is None:
            raise ValidationError("请选择支付方式", "PAYMENT_METHOD_REQUIRED")
        payment_method = PaymentMethod(payment_method)

        order = self.get_order(order_id)
        previous = order.status
        if order.is_terminal:
            # 宽松模式下同样不允许重复结账或为已取消订单结账
            raise InvalidTransitionError(previous.value, OrderStatus.PAID.value)
        self._ensure_not_split(order)
        self.lifecycle.validate(previous, OrderStatus.PAID)

        if paid_amount is not None and paid_amount < order.total:
            raise InsufficientPaymentError(paid_amount, order.total)

        updated = order.model_copy(update={
            "status": OrderStatus.PAID,
            "payment_method": payment_method,
            "paid_amount": paid_amount,
            "updated_at": datetime.now(),
        })
        saved = self.orders.save(updated)

        self._log(actor_id, "order_pay", saved, {
            "payment_method": payment_method.value,
            "total": str(saved.total),
            "paid_amount": str(paid_amount) if paid_amount is not None else None,
            "change": str(saved.change) if saved.change is not None else None,
        })
        return saved

    def estimated_prep_time(self, order: Order) -> int:
        """预计出餐时间：以当前菜单中的准备时间为准，菜单已下架的菜品用下单时快照"""
        times = []
        for item in order.items:
            menu_item = self.catalog.get(item.menu_item_id)
            times.append(menu_item.prep_time if menu_item else item.prep_time)
        return max(times, default=0)

    def kitchen_queue(self, now: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
        """厨房队列：待制作和制作中的订单，最早下单的在前；已分账的父订单由子订单代替"""
        now = now or datetime.now()
        queue: Dict[str, List[Dict[str, Any]]] = {
            OrderStatus.PENDING.value: [],
            OrderStatus.PREPARING.value: [],
        }
        split_parents = self.orders.split_parent_ids()
        for order in self.orders.find(status=[OrderStatus.PENDING, OrderStatus.PREPARING]):
            if order.id in split_parents:
                continue
            minutes = max(int((now - order.created_at).total_seconds() // 60), 0)
            queue[order.status.value].append({
                "order": order,
                "elapsed_minutes": minutes,
                "urgency": self._urgency(minutes),
                "estimated_prep_time": self.estimated_prep_time(order),
            })
        for entries in queue.values():
            entries.sort(key=lambda e: e["order"].created_at)
        return queue

    def _urgency(self, minutes: int) -> str:
        if minutes < URGENCY_ATTENTION_MINUTES:
            return "ok"
        if minutes < URGENCY_LATE_MINUTES:
            return "attention"
        return "late"

    def _get_editable(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        if order.status != OrderStatus.PENDING:
            raise OrderNotEditableError(order.id, order.status.value)
        self._ensure_not_split(order)
        return order

    def _ensure_not_split(self, order: Order):
        """已分账的父订单由子订单结算，不再单独流转"""
        if self.orders.find(parent_order_id=order.id):
            raise ValidationError("该订单已分账，请对子订单操作", "ORDER_ALREADY_SPLIT",
                                  {"order_id": order.id})

    def _save_items(self, order: Order, items: List[OrderItem], actor_id: Optional[str],
                    action: str, detail: Dict[str, Any]) -> Order:
        updated = order.model_copy(update={"items": items, "updated_at": datetime.now()})
        saved = self.orders.save(updated)
        detail = dict(detail, total=str(saved.total))
        self._log(actor_id, action, saved, detail)
        return saved

    def _log(self, actor_id: Optional[str], action: str, order: Order, detail: Dict[str, Any]):
        """记录订单操作日志"""
        self.logs.write(action, detail, actor_id=actor_id, ref_id=order.id)
