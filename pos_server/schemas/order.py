"""
订单相关的请求/响应模式
金额在响应中统一四舍五入到两位小数
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..models.base import money_display
from ..models.menu import MeatPoint
from ..models.order import ItemKey, Order, OrderItem, OrderStatus, PaymentMethod


class ItemKeyRequest(BaseModel):
    """定位订单中某一菜品行的身份字段"""
    menu_item_id: str = Field(..., description="菜品ID")
    notes: str = Field("", description="备注")
    meat_point: Optional[MeatPoint] = Field(None, description="熟度")
    removed_items: List[str] = Field(default_factory=list, description="去除的配料")

    def to_key(self) -> ItemKey:
        meat_point = self.meat_point.value if self.meat_point else None
        return (self.menu_item_id, self.notes or "", meat_point, tuple(sorted(set(self.removed_items))))


class OrderItemRequest(ItemKeyRequest):
    """下单/加菜请求中的菜品行"""
    quantity: int = Field(1, ge=1, le=99, description="数量")


class OrderCreateRequest(BaseModel):
    """订单创建请求"""
    table_number: str = Field(..., min_length=1, max_length=20, description="桌号")
    items: List[OrderItemRequest] = Field(..., min_length=1, description="菜品行")


class ItemQuantityRequest(ItemKeyRequest):
    """菜品数量增减请求"""
    delta: int = Field(..., description="数量变化，可为负数")


class OrderStatusRequest(BaseModel):
    """状态修改请求"""
    status: OrderStatus = Field(..., description="目标状态")


class PaymentRequest(BaseModel):
    """结账请求"""
    payment_method: PaymentMethod = Field(..., description="支付方式")
    paid_amount: Optional[Decimal] = Field(None, ge=0, description="实收金额（现金找零时填写）")


class SplitAssignmentItem(ItemKeyRequest):
    """分配给某人的菜品及份数"""
    quantity: int = Field(1, ge=1, description="份数")


class SplitRequest(BaseModel):
    """分账请求：splits[i] 是第 i 个人分到的菜品"""
    participants: Optional[int] = Field(None, description="人数，缺省取 splits 长度；范围由配置决定")
    splits: List[List[SplitAssignmentItem]] = Field(default_factory=list, description="每人的分配")

    def assignments(self):
        return [[(entry.to_key(), entry.quantity) for entry in split] for split in self.splits]


class OrderItemResponse(BaseModel):
    """订单菜品行响应"""
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int
    notes: str
    meat_point: Optional[MeatPoint] = None
    removed_items: List[str]
    line_total: Decimal

    @classmethod
    def from_item(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            menu_item_id=item.menu_item_id,
            name=item.name,
            price=money_display(item.price),
            quantity=item.quantity,
            notes=item.notes,
            meat_point=item.meat_point,
            removed_items=list(item.removed_items),
            line_total=money_display(item.line_total),
        )


class OrderResponse(BaseModel):
    """订单响应"""
    id: str = Field(..., description="订单ID")
    table_number: str = Field(..., description="桌号")
    status: OrderStatus = Field(..., description="订单状态")
    items: List[OrderItemResponse] = Field(..., description="菜品行")
    total: Decimal = Field(..., description="菜品总额")
    service_fee: Decimal = Field(..., description="服务费")
    total_with_fee: Decimal = Field(..., description="含服务费总额")
    payment_method: Optional[PaymentMethod] = Field(None, description="支付方式")
    paid_amount: Optional[Decimal] = Field(None, description="实收金额")
    change: Optional[Decimal] = Field(None, description="找零")
    parent_order_id: Optional[str] = Field(None, description="分账来源订单ID")
    split_with: List[str] = Field(default_factory=list, description="兄弟订单ID")
    estimated_prep_time: int = Field(0, description="预计出餐时间（分钟）")
    created_at: datetime = Field(..., description="创建时间")
    updated_at: Optional[datetime] = Field(None, description="更新时间")

    @classmethod
    def from_order(cls, order: Order, estimated_prep_time: Optional[int] = None) -> "OrderResponse":
        totals = order.display_totals()
        return cls(
            id=order.id,
            table_number=order.table_number,
            status=order.status,
            items=[OrderItemResponse.from_item(i) for i in order.items],
            total=totals["total"],
            service_fee=totals["service_fee"],
            total_with_fee=totals["total_with_fee"],
            payment_method=order.payment_method,
            paid_amount=money_display(order.paid_amount),
            change=totals["change"],
            parent_order_id=order.parent_order_id,
            split_with=list(order.split_with),
            estimated_prep_time=(
                estimated_prep_time if estimated_prep_time is not None else order.estimated_prep_time()
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class SplitShareResponse(BaseModel):
    """分账预览中的一人份"""
    index: int
    items: List[OrderItemResponse]
    total: Decimal
    service_fee: Decimal
    total_with_fee: Decimal


class SplitPreviewResponse(BaseModel):
    """分账预览响应"""
    order_id: str
    participants: int
    complete: bool
    shares: List[SplitShareResponse]
    unassigned: List[OrderItemResponse]

    @classmethod
    def from_splitter(cls, splitter) -> "SplitPreviewResponse":
        shares = []
        for share in splitter.summary():
            shares.append(SplitShareResponse(
                index=share["index"],
                items=[OrderItemResponse.from_item(i) for i in share["items"]],
                total=share["total"],
                service_fee=share["service_fee"],
                total_with_fee=share["total_with_fee"],
            ))
        return cls(
            order_id=splitter.order.id,
            participants=splitter.participant_count,
            complete=splitter.is_complete(),
            shares=shares,
            unassigned=[OrderItemResponse.from_item(i) for i in splitter.unassigned_items()],
        )


class KitchenQueueEntry(BaseModel):
    """厨房队列中的订单"""
    order: OrderResponse
    elapsed_minutes: int
    urgency: str

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "KitchenQueueEntry":
        return cls(
            order=OrderResponse.from_order(entry["order"], entry["estimated_prep_time"]),
            elapsed_minutes=entry["elapsed_minutes"],
            urgency=entry["urgency"],
        )
