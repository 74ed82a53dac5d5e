"""
报表响应模式
"""

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List


class SalesDay(BaseModel):
    date: date
    total: Decimal
    orders: int
    service_fees: Decimal


class SalesTotals(BaseModel):
    revenue: Decimal
    orders: int
    service_fees: Decimal
    average_ticket: Decimal


class SalesReportResponse(BaseModel):
    """销售报表"""
    days: List[SalesDay]
    totals: SalesTotals


class SummaryResponse(BaseModel):
    """收银面板汇总"""
    revenue: Decimal
    pending_payments: Decimal
    open_orders: int
    paid_orders: int
