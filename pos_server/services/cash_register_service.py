"""
收银台服务
处理收银台的开启、关闭和销售额累计

业务规则：
- 同一时间最多一个收银台处于开启状态（由 register_locks 主键保证）
- 关闭时差额 = 清点现金 - (初始金额 + 现金销售额)
- 已关闭的记录为历史数据，不再修改
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from ..core.exceptions import NoOpenRegisterError, RegisterAlreadyOpenError, ValidationError
from ..models.cash_register import CashRegisterSession, CashRegisterStatus
from ..models.order import PaymentMethod
from .repositories import CashRegisterRepository, OperationLogRepository, new_id


# 支付方式到销售额字段的映射
SALES_FIELD_BY_METHOD = {
    PaymentMethod.CASH: "cash_sales",
    PaymentMethod.CREDIT: "card_sales",
    PaymentMethod.DEBIT: "card_sales",
    PaymentMethod.PIX: "pix_sales",
    PaymentMethod.MEAL_TICKET: "meal_ticket_sales",
}


class CashRegisterService:
    """收银台服务"""

    def __init__(self, registers: CashRegisterRepository, logs: OperationLogRepository):
        self.registers = registers
        self.logs = logs

    def current(self) -> Optional[CashRegisterSession]:
        """当前开启的收银台，没有时返回 None"""
        return self.registers.get_open()

    def require_current(self, message: str = "没有开启的收银台") -> CashRegisterSession:
        session = self.current()
        if session is None:
            raise NoOpenRegisterError(message)
        return session

    def open(self, initial_amount: Decimal, notes: Optional[str] = None,
             actor_id: Optional[str] = None) -> CashRegisterSession:
        """
        开启收银台

        Raises:
            ValidationError: 初始金额为负时
            RegisterAlreadyOpenError: 已有开启的收银台时（与新的初始金额无关）
        """
        initial_amount = Decimal(initial_amount)
        if initial_amount < 0:
            raise ValidationError("初始金额不能为负数", "INVALID_AMOUNT")

        existing = self.current()
        if existing is not None:
            raise RegisterAlreadyOpenError(existing.id)

        session = CashRegisterSession(
            id=new_id(),
            opened_at=datetime.now(),
            initial_amount=initial_amount,
            status=CashRegisterStatus.OPEN,
            notes=notes or None,
        )
        saved = self.registers.insert_open(session)

        self.logs.write("register_open", {
            "initial_amount": str(saved.initial_amount),
            "notes": saved.notes,
        }, actor_id=actor_id, ref_id=saved.id)
        return saved

    def close(self, final_amount: Decimal, notes: Optional[str] = None,
              actor_id: Optional[str] = None) -> CashRegisterSession:
        """
        关闭收银台

        销售额按已累计的值冻结，不在这里重新计算

        Raises:
            ValidationError: 清点金额为负时
            NoOpenRegisterError: 没有开启的收银台时
        """
        final_amount = Decimal(final_amount)
        if final_amount < 0:
            raise ValidationError("清点金额不能为负数", "INVALID_AMOUNT")

        session = self.require_current()
        difference = session.closing_difference(final_amount)

        patch = {
            "final_amount": final_amount,
            "difference": difference,
            "closed_at": datetime.now(),
            "status": CashRegisterStatus.CLOSED.value,
        }
        if notes:
            patch["notes"] = notes
        saved = self.registers.close(session.id, patch)

        self.logs.write("register_close", {
            "initial_amount": str(saved.initial_amount),
            "cash_sales": str(saved.cash_sales),
            "final_amount": str(final_amount),
            "difference": str(difference),
        }, actor_id=actor_id, ref_id=saved.id)
        return saved

    def record_sale(self, payment_method: PaymentMethod, amount: Decimal,
                    order_id: Optional[str] = None) -> CashRegisterSession:
        """把一笔销售额累计到当前收银台对应支付方式的字段"""
        amount = Decimal(amount)
        if amount < 0:
            raise ValidationError("销售金额不能为负数", "INVALID_AMOUNT")
        session = self.require_current()
        field = SALES_FIELD_BY_METHOD[PaymentMethod(payment_method)]
        new_value = getattr(session, field) + amount
        saved = self.registers.update(session.id, {field: new_value})

        self.logs.write("register_sale", {
            "payment_method": PaymentMethod(payment_method).value,
            "amount": str(amount),
            "order_id": order_id,
        }, ref_id=saved.id)
        return saved

    def history(self, limit: int = 30) -> List[CashRegisterSession]:
        """收银台历史，最新的在前"""
        return self.registers.history(limit)
