"""
收银台相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import BaseEntity, money_display


class CashRegisterStatus(str, Enum):
    """收银台状态枚举"""
    OPEN = "open"       # 营业中
    CLOSED = "closed"   # 已关闭


class CashRegisterSession(BaseEntity):
    """一次开关收银台之间的记账周期"""
    id: str = Field(..., description="收银台会话ID")
    opened_at: datetime = Field(..., description="开启时间")
    initial_amount: Decimal = Field(..., ge=0, description="开启时放入的现金")
    status: CashRegisterStatus = Field(CashRegisterStatus.OPEN, description="状态")
    cash_sales: Decimal = Field(Decimal("0"), ge=0, description="现金销售额")
    card_sales: Decimal = Field(Decimal("0"), ge=0, description="刷卡销售额")
    pix_sales: Decimal = Field(Decimal("0"), ge=0, description="PIX 销售额")
    meal_ticket_sales: Decimal = Field(Decimal("0"), ge=0, description="餐券销售额")
    notes: Optional[str] = Field(None, description="备注")
    closed_at: Optional[datetime] = Field(None, description="关闭时间")
    final_amount: Optional[Decimal] = Field(None, ge=0, description="关闭时清点的现金")
    difference: Optional[Decimal] = Field(None, description="清点差额")

    @property
    def expected_cash(self) -> Decimal:
        """应有现金 = 初始金额 + 现金销售额"""
        return self.initial_amount + self.cash_sales

    @property
    def is_open(self) -> bool:
        return self.status == CashRegisterStatus.OPEN

    def closing_difference(self, final_amount: Decimal) -> Decimal:
        """差额 = 清点金额 - (初始金额 + 现金销售额)"""
        return final_amount - self.expected_cash

    def display_totals(self) -> dict:
        return {
            "initial_amount": money_display(self.initial_amount),
            "cash_sales": money_display(self.cash_sales),
            "card_sales": money_display(self.card_sales),
            "pix_sales": money_display(self.pix_sales),
            "meal_ticket_sales": money_display(self.meal_ticket_sales),
            "expected_cash": money_display(self.expected_cash),
            "final_amount": money_display(self.final_amount),
            "difference": money_display(self.difference),
        }
