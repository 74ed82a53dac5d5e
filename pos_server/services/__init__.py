"""
Business logic services.
Contains service layer implementations for core business operations.
"""

from .bill_splitter import BillSplitter, SplitService
from .cash_register_service import CashRegisterService
from .order_lifecycle import OrderLifecycle
from .order_service import OrderService
from .payment_service import PaymentService
from .report_service import ReportService

__all__ = [
    "BillSplitter",
    "CashRegisterService",
    "OrderLifecycle",
    "OrderService",
    "PaymentService",
    "ReportService",
    "SplitService",
]
