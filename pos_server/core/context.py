"""
应用上下文
create_app 时按配置组装存储与各业务服务，通过 app.state.context 注入到路由
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..config.menu_utils import get_menu_config
from ..config.settings import Settings
from ..models.menu import MenuCatalog
from ..services.bill_splitter import SplitService
from ..services.cash_register_service import CashRegisterService
from ..services.order_lifecycle import OrderLifecycle
from ..services.order_service import OrderService
from ..services.payment_service import PaymentService
from ..services.report_service import ReportService
from ..services.repositories import CashRegisterRepository, OperationLogRepository, OrderRepository
from .database import DatabaseManager
from .record_store import DuckDBRecordStore, RecordStore


@dataclass
class AppContext:
    """一次应用实例内共享的依赖"""
    settings: Settings
    store: RecordStore
    catalog: MenuCatalog
    logs: OperationLogRepository
    order_service: OrderService
    split_service: SplitService
    register_service: CashRegisterService
    payment_service: PaymentService
    report_service: ReportService
    db: Optional[DatabaseManager] = None


def build_context(settings: Settings, store: Optional[RecordStore] = None,
                  catalog: Optional[MenuCatalog] = None) -> AppContext:
    """按配置组装上下文；测试可传入自定义存储和菜单"""
    db = None
    if store is None:
        db = DatabaseManager(settings)
        store = DuckDBRecordStore(db)
    if catalog is None:
        catalog = MenuCatalog.from_config(get_menu_config())

    orders = OrderRepository(store, settings.service_fee_rate)
    logs = OperationLogRepository(store)
    registers = CashRegisterRepository(store)

    order_service = OrderService(orders, logs, catalog, OrderLifecycle(settings.strict_status_transitions))
    register_service = CashRegisterService(registers, logs)

    return AppContext(
        settings=settings,
        store=store,
        catalog=catalog,
        logs=logs,
        order_service=order_service,
        split_service=SplitService(
            orders, logs,
            min_participants=settings.min_split_participants,
            max_participants=settings.max_split_participants,
            service_fee_rate=settings.service_fee_rate,
        ),
        register_service=register_service,
        payment_service=PaymentService(
            order_service, register_service, settings.require_open_register_for_payment
        ),
        report_service=ReportService(orders),
        db=db,
    )


def get_context(request: Request) -> AppContext:
    """FastAPI 依赖：取出当前应用的上下文"""
    return request.app.state.context
