"""
收银台相关的请求/响应模式
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..models.cash_register import CashRegisterSession, CashRegisterStatus


class RegisterOpenRequest(BaseModel):
    """开启收银台请求"""
    initial_amount: Decimal = Field(..., ge=0, description="初始现金")
    notes: Optional[str] = Field(None, max_length=500, description="备注")


class RegisterCloseRequest(BaseModel):
    """关闭收银台请求"""
    final_amount: Decimal = Field(..., ge=0, description="清点现金")
    notes: Optional[str] = Field(None, max_length=500, description="备注")


class CashRegisterResponse(BaseModel):
    """收银台响应"""
    id: str
    status: CashRegisterStatus
    opened_at: datetime
    closed_at: Optional[datetime] = None
    initial_amount: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    pix_sales: Decimal
    meal_ticket_sales: Decimal
    expected_cash: Decimal
    final_amount: Optional[Decimal] = None
    difference: Optional[Decimal] = None
    notes: Optional[str] = None

    @classmethod
    def from_session(cls, session: CashRegisterSession) -> "CashRegisterResponse":
        return cls(
            id=session.id,
            status=session.status,
            opened_at=session.opened_at,
            closed_at=session.closed_at,
            notes=session.notes,
            **session.display_totals(),
        )
