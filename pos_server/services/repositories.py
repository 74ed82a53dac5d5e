"""
仓储层
负责领域模型与存储记录之间的转换，业务服务不直接接触记录字典
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

from ..core.exceptions import DuplicateRecordError, RecordNotFoundError, RegisterAlreadyOpenError
from ..core.record_store import RecordStore
from ..models.cash_register import CashRegisterSession, CashRegisterStatus
from ..models.order import DEFAULT_SERVICE_FEE_RATE, Order, OrderStatus


def new_id() -> str:
    return str(uuid.uuid4())


class OrderRepository:
    """订单仓储（orders 集合）"""

    collection = "orders"

    def __init__(self, store: RecordStore, service_fee_rate: Decimal = DEFAULT_SERVICE_FEE_RATE):
        self.store = store
        self.service_fee_rate = service_fee_rate

    def get(self, order_id: str) -> Optional[Order]:
        record = self.store.get(self.collection, order_id)
        return self._to_model(record) if record else None

    def find(self, status: Optional[Any] = None, table_number: Optional[str] = None,
             parent_order_id: Optional[str] = None,
             created_from: Optional[datetime] = None,
             created_to: Optional[datetime] = None) -> List[Order]:
        filters: Dict[str, Any] = {}
        if status is not None:
            if isinstance(status, (list, tuple, set, frozenset)):
                filters["status"] = [OrderStatus(s).value for s in status]
            else:
                filters["status"] = OrderStatus(status).value
        if table_number is not None:
            filters["table_number"] = table_number
        if parent_order_id is not None:
            filters["parent_order_id"] = parent_order_id
        if created_from is not None:
            filters["created_at__gte"] = created_from
        if created_to is not None:
            filters["created_at__lte"] = created_to
        records = self.store.find(self.collection, filters, order_by="created_at")
        return [self._to_model(r) for r in records]

    def split_parent_ids(self) -> Set[str]:
        """已分账的父订单ID"""
        records = self.store.find(self.collection, {"parent_order_id__ne": ""})
        return {r["parent_order_id"] for r in records if r.get("parent_order_id")}

    def insert(self, order: Order) -> Order:
        return self._to_model(self.store.insert(self.collection, self._to_record(order)))

    def save(self, order: Order) -> Order:
        """整单覆盖写入（最后写入者生效）"""
        record = self._to_record(order)
        record.pop("id")
        record.pop("created_at")
        return self._to_model(self.store.update(self.collection, order.id, record))

    def _to_record(self, order: Order) -> Dict[str, Any]:
        return {
            "id": order.id,
            "table_number": order.table_number,
            "items": [item.model_dump(mode="json") for item in order.items],
            "status": order.status.value,
            "total": order.total,
            "service_fee": order.service_fee,
            "payment_method": order.payment_method.value if order.payment_method else None,
            "paid_amount": order.paid_amount,
            "change_amount": order.change,
            "parent_order_id": order.parent_order_id,
            "split_with": list(order.split_with),
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def _to_model(self, record: Dict[str, Any]) -> Order:
        return Order.model_validate({
            "id": record["id"],
            "table_number": record["table_number"],
            "items": record.get("items") or [],
            "status": record["status"],
            "created_at": record["created_at"],
            "updated_at": record.get("updated_at"),
            "payment_method": record.get("payment_method"),
            "paid_amount": record.get("paid_amount"),
            "parent_order_id": record.get("parent_order_id"),
            "split_with": record.get("split_with") or [],
            "service_fee_rate": self.service_fee_rate,
        })


class CashRegisterRepository:
    """收银台仓储（cash_registers + register_locks 集合）"""

    collection = "cash_registers"
    lock_collection = "register_locks"
    lock_id = "open-register"

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, register_id: str) -> Optional[CashRegisterSession]:
        record = self.store.get(self.collection, register_id)
        return CashRegisterSession.model_validate(record) if record else None

    def get_open(self) -> Optional[CashRegisterSession]:
        records = self.store.find(
            self.collection, {"status": CashRegisterStatus.OPEN.value}, order_by="-opened_at", limit=1
        )
        return CashRegisterSession.model_validate(records[0]) if records else None

    def history(self, limit: int = 30) -> List[CashRegisterSession]:
        records = self.store.find(self.collection, order_by="-opened_at", limit=limit)
        return [CashRegisterSession.model_validate(r) for r in records]

    def insert_open(self, session: CashRegisterSession) -> CashRegisterSession:
        """
        写入开启记录

        先占用唯一的开启锁，主键冲突说明已有收银台开启（包括并发竞争的情况）
        """
        with self.store.transaction():
            try:
                self.store.insert(self.lock_collection, {
                    "id": self.lock_id,
                    "register_id": session.id,
                    "created_at": session.opened_at,
                })
            except DuplicateRecordError:
                raise RegisterAlreadyOpenError()
            record = self.store.insert(self.collection, session.model_dump(mode="python"))
        return CashRegisterSession.model_validate(record)

    def update(self, register_id: str, patch: Dict[str, Any]) -> CashRegisterSession:
        return CashRegisterSession.model_validate(self.store.update(self.collection, register_id, patch))

    def close(self, register_id: str, patch: Dict[str, Any]) -> CashRegisterSession:
        """写入关闭记录并释放开启锁"""
        with self.store.transaction():
            record = self.store.update(self.collection, register_id, patch)
            try:
                self.store.delete(self.lock_collection, self.lock_id)
            except RecordNotFoundError:
                pass  # 历史数据可能没有锁记录
        return CashRegisterSession.model_validate(record)


class OperationLogRepository:
    """操作日志仓储（logs 集合）"""

    collection = "logs"

    def __init__(self, store: RecordStore):
        self.store = store

    def write(self, action: str, detail: Dict[str, Any], actor_id: Optional[str] = None,
              ref_id: Optional[str] = None) -> None:
        self.store.insert(self.collection, {
            "id": new_id(),
            "actor_id": actor_id,
            "action": action,
            "ref_id": ref_id,
            "detail_json": detail,
            "created_at": datetime.now(),
        })

    def find(self, action: Optional[str] = None, ref_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = {}
        if action is not None:
            filters["action"] = action
        if ref_id is not None:
            filters["ref_id"] = ref_id
        return self.store.find(self.collection, filters, order_by="created_at")
