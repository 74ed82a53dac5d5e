"""
测试配置文件
提供测试所需的fixtures和配置
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from pos_server.app import create_app
from pos_server.config.menu_utils import DEFAULT_MENU
from pos_server.config.settings import Settings
from pos_server.core.context import build_context
from pos_server.core.security import SecurityManager
from pos_server.models.menu import MenuCatalog
from pos_server.models.order import Order, OrderItem, OrderStatus
from pos_server.models.user import UserRole


@pytest.fixture
def test_settings():
    """测试配置：内存数据库"""
    return Settings(
        database_url=":memory:",
        jwt_secret_key="test-secret-key",
        api_title="Restaurante POS API (Test)",
        api_version="1.0.0-test",
    )


@pytest.fixture
def catalog():
    """内置默认菜单"""
    return MenuCatalog.from_config(DEFAULT_MENU)


@pytest.fixture
def context(test_settings, catalog):
    """组装好的服务上下文"""
    ctx = build_context(test_settings, catalog=catalog)
    yield ctx
    ctx.db.close()


@pytest.fixture
def store(context):
    return context.store


@pytest.fixture
def order_service(context):
    return context.order_service


@pytest.fixture
def register_service(context):
    return context.register_service


@pytest.fixture
def app_instance(test_settings, catalog):
    """测试应用实例"""
    app = create_app(test_settings, catalog=catalog)
    yield app
    app.state.context.db.close()


@pytest.fixture
def client(app_instance):
    """测试客户端"""
    with TestClient(app_instance) as c:
        yield c


@pytest.fixture
def make_headers(test_settings):
    """按角色生成认证头"""
    security = SecurityManager(test_settings)

    def _make(*roles, staff_id="staff-1"):
        token = security.create_jwt_token(staff_id, roles)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def waiter_headers(make_headers):
    return make_headers(UserRole.WAITER, staff_id="waiter-1")


@pytest.fixture
def kitchen_headers(make_headers):
    return make_headers(UserRole.KITCHEN, staff_id="kitchen-1")


@pytest.fixture
def cashier_headers(make_headers):
    return make_headers(UserRole.CASHIER, staff_id="cashier-1")


@pytest.fixture
def manager_headers(make_headers):
    return make_headers(UserRole.MANAGER, staff_id="manager-1")


@pytest.fixture
def picanha(catalog):
    return catalog.get("1")


@pytest.fixture
def salmon(catalog):
    return catalog.get("2")


@pytest.fixture
def carbonara(catalog):
    return catalog.get("3")


@pytest.fixture
def delivered_order(order_service):
    """已上桌的订单：Picanha ×1 + Carbonara ×2"""
    items = [
        order_service.build_item("1", 1),
        order_service.build_item("3", 2),
    ]
    order = order_service.create_order("5", items)
    for status in (OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.DELIVERED):
        order = order_service.change_status(order.id, status)
    return order


@pytest.fixture
def make_order(catalog):
    """构造不落库的订单模型"""

    def _make(lines, status=OrderStatus.PENDING, minutes_ago=0, order_id="order-1"):
        items = [
            OrderItem.from_menu_item(catalog.get(menu_item_id), quantity)
            for menu_item_id, quantity in lines
        ]
        created_at = datetime.now() - timedelta(minutes=minutes_ago)
        return Order(id=order_id, table_number="1", items=items, status=status,
                     created_at=created_at, updated_at=created_at)

    return _make
