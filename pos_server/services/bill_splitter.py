"""
分账模块
把一张订单的菜品无遗漏、无重复地分配给 N 个人，每人单独计算总额和 10% 服务费

流程：
- BillSplitter 在内存中维护每个人的分配草稿（不写存储）
- commit() 校验全部菜品都已分配后，为每个人生成一张子订单
- SplitService 负责加载父订单、按请求回放分配并持久化子订单；父订单保持不变
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..core.exceptions import (
    IncompleteDistributionError,
    OrderNotFoundError,
    OverAssignmentError,
    ValidationError,
)
from ..models.base import money_display
from ..models.order import DEFAULT_SERVICE_FEE_RATE, ItemKey, Order, OrderItem, items_total
from . import item_matcher
from .repositories import OperationLogRepository, OrderRepository, new_id


# 分配请求中的一项：(菜品身份键, 份数)
Assignment = Tuple[ItemKey, int]


class Split(BaseModel):
    """一个人的分配草稿"""
    items: List[OrderItem] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return items_total(self.items)

    @property
    def quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class BillSplitter:
    """分账草稿"""

    def __init__(self, order: Order, participants: int = 2,
                 min_participants: int = 2, max_participants: int = 10,
                 service_fee_rate: Decimal = DEFAULT_SERVICE_FEE_RATE):
        self.order = order
        self.min_participants = min_participants
        self.max_participants = max_participants
        self.service_fee_rate = service_fee_rate
        self.splits: List[Split] = []
        self.set_participant_count(participants)

    @property
    def participant_count(self) -> int:
        return len(self.splits)

    def set_participant_count(self, n: int) -> List[Split]:
        """
        设置人数（限制在 [min, max]）

        增加人数追加空草稿；减少人数从末尾截断，被截断的草稿（含已分配菜品）作为返回值交给调用方确认
        """
        n = max(self.min_participants, min(self.max_participants, n))
        dropped: List[Split] = []
        if n > len(self.splits):
            self.splits.extend(Split() for _ in range(n - len(self.splits)))
        elif n < len(self.splits):
            dropped = self.splits[n:]
            self.splits = self.splits[:n]
        return [s for s in dropped if s.items]

    def assigned_quantity(self, key: ItemKey) -> int:
        """某一菜品行在所有草稿中已分配的数量"""
        total = 0
        for split in self.splits:
            index = item_matcher.find_index(split.items, key)
            if index is not None:
                total += split.items[index].quantity
        return total

    def unassigned_items(self) -> List[OrderItem]:
        """未分配完的菜品行，数量为剩余未分配数量"""
        remaining = []
        for line in self.order.items:
            left = line.quantity - self.assigned_quantity(line.key)
            if left > 0:
                remaining.append(line.model_copy(update={"quantity": left}))
        return remaining

    def assign(self, split_index: int, item: OrderItem, qty: int = 1) -> Split:
        """把 qty 份菜品分配给第 split_index 个人"""
        split = self._split_at(split_index)
        if qty < 1:
            raise ValidationError("分配数量必须大于0", "INVALID_QUANTITY")
        line = self.order_line(item.key)
        remaining = line.quantity - self.assigned_quantity(line.key)
        if qty > remaining:
            raise OverAssignmentError(line.menu_item_id, qty, remaining)
        split.items = item_matcher.merge_or_append(split.items, line.model_copy(update={"quantity": qty}))
        return split

    def unassign(self, split_index: int, item_index: int, qty: int = 1) -> Split:
        """从第 split_index 个人的第 item_index 行退回 qty 份，减到 0 时删除该行"""
        split = self._split_at(split_index)
        if item_index < 0 or item_index >= len(split.items):
            raise ValidationError("分配行不存在", "SPLIT_ITEM_NOT_FOUND",
                                  {"split_index": split_index, "item_index": item_index})
        if qty < 1:
            raise ValidationError("退回数量必须大于0", "INVALID_QUANTITY")
        split.items = item_matcher.adjust_quantity(split.items, split.items[item_index].key, -qty)
        return split

    def service_fee(self, split_index: int) -> Decimal:
        return self._split_at(split_index).total * self.service_fee_rate

    def summary(self) -> List[Dict[str, Any]]:
        """每个人的总额、服务费和含服务费总额（展示时才四舍五入）"""
        result = []
        for index, split in enumerate(self.splits):
            fee = split.total * self.service_fee_rate
            result.append({
                "index": index,
                "items": split.items,
                "total": money_display(split.total),
                "service_fee": money_display(fee),
                "total_with_fee": money_display(split.total + fee),
            })
        return result

    def is_complete(self) -> bool:
        return all(
            self.assigned_quantity(line.key) == line.quantity for line in self.order.items
        ) and self._assigned_total() == self.order.item_quantity

    def commit(self, now: Optional[datetime] = None) -> List[Order]:
        """
        生成子订单

        前置条件：每一行菜品的分配数量等于下单数量。不满足时抛出 IncompleteDistributionError，
        不产生任何子订单。子订单继承父订单当时的状态、桌号和下单时间。
        """
        if not self.is_complete():
            raise IncompleteDistributionError(self._assigned_total(), self.order.item_quantity)

        now = now or datetime.now()
        ids = [new_id() for _ in self.splits]
        children = []
        for index, split in enumerate(self.splits):
            children.append(Order(
                id=ids[index],
                table_number=self.order.table_number,
                items=[item.model_copy() for item in split.items],
                status=self.order.status,
                created_at=self.order.created_at,
                updated_at=now,
                parent_order_id=self.order.id,
                split_with=[other for other in ids if other != ids[index]],
                service_fee_rate=self.service_fee_rate,
            ))
        return children

    def _assigned_total(self) -> int:
        return sum(split.quantity for split in self.splits)

    def _split_at(self, split_index: int) -> Split:
        if split_index < 0 or split_index >= len(self.splits):
            raise ValidationError("分账人序号超出范围", "SPLIT_INDEX_OUT_OF_RANGE",
                                  {"split_index": split_index, "participants": len(self.splits)})
        return self.splits[split_index]

    def order_line(self, key: ItemKey) -> OrderItem:
        index = item_matcher.find_index(self.order.items, key)
        if index is None:
            raise ValidationError("菜品不属于该订单", "SPLIT_ITEM_NOT_IN_ORDER", {"menu_item_id": key[0]})
        return self.order.items[index]


class SplitService:
    """分账服务：回放分配请求并持久化子订单"""

    def __init__(self, orders: OrderRepository, logs: OperationLogRepository,
                 min_participants: int = 2, max_participants: int = 10,
                 service_fee_rate: Decimal = DEFAULT_SERVICE_FEE_RATE):
        self.orders = orders
        self.logs = logs
        self.min_participants = min_participants
        self.max_participants = max_participants
        self.service_fee_rate = service_fee_rate

    def build(self, order_id: str, assignments: List[List[Assignment]],
              participants: Optional[int] = None) -> BillSplitter:
        """
        按请求构造分账草稿

        Args:
            order_id: 父订单ID
            assignments: 每个人分到的 (菜品身份键, 份数) 列表
            participants: 人数，缺省时取 assignments 的长度
        """
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.is_terminal:
            raise ValidationError(f"订单状态为{order.status.value}，无法分账", "ORDER_NOT_SPLITTABLE",
                                  {"order_id": order_id, "status": order.status.value})

        count = participants if participants is not None else len(assignments)
        if count > self.max_participants or count < self.min_participants:
            raise ValidationError(
                f"分账人数必须在 {self.min_participants} 到 {self.max_participants} 之间",
                "INVALID_PARTICIPANTS", {"participants": count}
            )
        if len(assignments) > count:
            raise ValidationError("分配列表数量超过分账人数", "INVALID_PARTICIPANTS",
                                  {"participants": count, "assignments": len(assignments)})

        splitter = BillSplitter(order, count, self.min_participants, self.max_participants,
                                self.service_fee_rate)
        for split_index, entries in enumerate(assignments):
            for key, qty in entries:
                splitter.assign(split_index, splitter.order_line(key), qty)
        return splitter

    def preview_split(self, order_id: str, assignments: List[List[Assignment]],
                participants: Optional[int] = None) -> BillSplitter:
        """预览分账结果，不写存储"""
        return self.build(order_id, assignments, participants)

    def split_order(self, order_id: str, assignments: List[List[Assignment]],
                    participants: Optional[int] = None, actor_id: Optional[str] = None) -> List[Order]:
        """
        提交分账

        Raises:
            OrderNotFoundError: 父订单不存在时
            ValidationError: 父订单已终态、已经分过账或人数非法时
            IncompleteDistributionError: 仍有菜品未分配时
        """
        splitter = self.build(order_id, assignments, participants)
        if self.orders.find(parent_order_id=order_id):
            raise ValidationError("该订单已分账", "ORDER_ALREADY_SPLIT", {"order_id": order_id})

        children = splitter.commit()
        with self.orders.store.transaction():
            saved = [self.orders.insert(child) for child in children]

        self.logs.write("order_split", {
            "participants": len(saved),
            "children": [c.id for c in saved],
            "totals": [str(c.total) for c in saved],
        }, actor_id=actor_id, ref_id=order_id)
        return saved
