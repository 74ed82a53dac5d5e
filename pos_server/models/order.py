"""
订单相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, computed_field, field_validator

from .base import BaseEntity, TimestampMixin, money_display
from .menu import MeatPoint, MenuItem


DEFAULT_SERVICE_FEE_RATE = Decimal("0.10")

# 菜品行的身份键：(菜品ID, 备注, 熟度, 排序后的去除配料)
ItemKey = Tuple[str, str, Optional[str], Tuple[str, ...]]


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PENDING = "pending"         # 待制作
    PREPARING = "preparing"     # 制作中
    READY = "ready"             # 已出餐
    DELIVERED = "delivered"     # 已上桌
    PAID = "paid"               # 已结账
    CANCELLED = "cancelled"     # 已取消


class PaymentMethod(str, Enum):
    """支付方式枚举"""
    CREDIT = "credit"           # 信用卡
    DEBIT = "debit"             # 借记卡
    PIX = "pix"                 # PIX 转账
    CASH = "cash"               # 现金
    MEAL_TICKET = "meal-ticket" # 餐券


class OrderItem(BaseModel):
    """订单菜品行：菜单快照 + 定制信息"""
    menu_item_id: str = Field(..., description="菜品ID")
    name: str = Field(..., description="菜品名称")
    price: Decimal = Field(..., ge=0, description="单价")
    category: str = Field("", description="分类")
    prep_time: int = Field(0, ge=0, description="准备时间（分钟）")
    quantity: int = Field(1, ge=1, description="数量")
    notes: str = Field("", description="备注")
    meat_point: Optional[MeatPoint] = Field(None, description="熟度")
    removed_items: Tuple[str, ...] = Field(default_factory=tuple, description="去除的配料")

    @field_validator("removed_items", mode="before")
    @classmethod
    def normalize_removed_items(cls, v):
        """去重并排序，保证比较与顺序无关"""
        if v is None:
            return ()
        return tuple(sorted(set(v)))

    @field_validator("notes", mode="before")
    @classmethod
    def normalize_notes(cls, v):
        return v or ""

    @property
    def key(self) -> ItemKey:
        meat_point = self.meat_point.value if self.meat_point else None
        return (self.menu_item_id, self.notes, meat_point, tuple(sorted(self.removed_items)))

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_menu_item(cls, menu_item: MenuItem, quantity: int = 1, notes: str = "",
                       meat_point: Optional[MeatPoint] = None,
                       removed_items: Optional[List[str]] = None) -> "OrderItem":
        """由菜单条目生成订单菜品行，校验熟度和去除配料"""
        if meat_point is not None and not menu_item.has_meat_point:
            raise ValueError(f"{menu_item.name} 不支持选择熟度")
        removed = list(removed_items or [])
        unknown = [r for r in removed if r not in menu_item.customizable_items]
        if unknown:
            raise ValueError(f"{menu_item.name} 不可去除: {', '.join(unknown)}")
        return cls(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            price=menu_item.price,
            category=menu_item.category,
            prep_time=menu_item.prep_time,
            quantity=quantity,
            notes=notes,
            meat_point=meat_point,
            removed_items=removed,
        )


def items_total(items: List[OrderItem]) -> Decimal:
    """Σ 单价 × 数量，不做中间舍入"""
    return sum((item.line_total for item in items), Decimal("0"))


class Order(BaseEntity, TimestampMixin):
    """订单完整模型，金额字段全部由菜品行推导"""
    id: str = Field(..., description="订单ID")
    table_number: str = Field(..., min_length=1, description="桌号")
    items: List[OrderItem] = Field(default_factory=list, description="菜品行")
    status: OrderStatus = Field(OrderStatus.PENDING, description="订单状态")
    created_at: datetime = Field(..., description="创建时间")
    payment_method: Optional[PaymentMethod] = Field(None, description="支付方式")
    paid_amount: Optional[Decimal] = Field(None, ge=0, description="实收金额")
    parent_order_id: Optional[str] = Field(None, description="分账来源订单ID")
    split_with: List[str] = Field(default_factory=list, description="同批分账的兄弟订单ID")
    service_fee_rate: Decimal = Field(DEFAULT_SERVICE_FEE_RATE, exclude=True)

    @computed_field
    @property
    def total(self) -> Decimal:
        return items_total(self.items)

    @computed_field
    @property
    def service_fee(self) -> Decimal:
        return self.total * self.service_fee_rate

    @computed_field
    @property
    def change(self) -> Optional[Decimal]:
        if self.paid_amount is None:
            return None
        return self.paid_amount - self.total

    @property
    def total_with_fee(self) -> Decimal:
        return self.total + self.service_fee

    @property
    def item_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.PAID, OrderStatus.CANCELLED)

    def estimated_prep_time(self) -> int:
        """预计出餐时间：取菜品中最长的准备时间"""
        return max((item.prep_time for item in self.items), default=0)

    def display_totals(self) -> dict:
        """展示用金额（两位小数）"""
        return {
            "total": money_display(self.total),
            "service_fee": money_display(self.service_fee),
            "total_with_fee": money_display(self.total_with_fee),
            "change": money_display(self.change),
        }
