"""
订单管理路由模块
下单、改菜、状态流转、结账和分账
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from ...schemas.order import (
    ItemKeyRequest,
    ItemQuantityRequest,
    OrderCreateRequest,
    OrderItemRequest,
    OrderResponse,
    OrderStatusRequest,
    PaymentRequest,
    SplitPreviewResponse,
    SplitRequest,
)
from ...core.context import AppContext, get_context
from ...core.error_handler import create_success_response
from ...core.security import require_roles
from ...models.order import OrderStatus
from ...models.user import StaffIdentity, UserRole

router = APIRouter()


def _order_data(ctx: AppContext, order) -> dict:
    prep_time = ctx.order_service.estimated_prep_time(order)
    return OrderResponse.from_order(order, prep_time).model_dump(mode="json")


def _build_item(ctx: AppContext, req: OrderItemRequest):
    return ctx.order_service.build_item(
        req.menu_item_id, req.quantity, req.notes, req.meat_point, req.removed_items
    )


@router.post("")
def create_order(
    req: OrderCreateRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.WAITER)),
    ctx: AppContext = Depends(get_context),
):
    """创建订单"""
    items = [_build_item(ctx, item) for item in req.items]
    order = ctx.order_service.create_order(req.table_number, items, actor_id=staff.staff_id)
    return create_success_response(_order_data(ctx, order), "订单创建成功")


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = Query(None, description="按状态筛选"),
    table_number: Optional[str] = Query(None, description="按桌号筛选"),
    staff: StaffIdentity = Depends(require_roles(
        UserRole.WAITER, UserRole.KITCHEN, UserRole.CASHIER, UserRole.MANAGER
    )),
    ctx: AppContext = Depends(get_context),
):
    """订单列表，按下单时间升序"""
    orders = ctx.order_service.list_orders(status=status, table_number=table_number)
    return create_success_response([_order_data(ctx, o) for o in orders], "查询成功")


@router.get("/{order_id}")
def get_order(
    order_id: str,
    staff: StaffIdentity = Depends(require_roles(
        UserRole.WAITER, UserRole.KITCHEN, UserRole.CASHIER, UserRole.MANAGER
    )),
    ctx: AppContext = Depends(get_context),
):
    """订单详情"""
    order = ctx.order_service.get_order(order_id)
    return create_success_response(_order_data(ctx, order), "查询成功")


@router.post("/{order_id}/items")
def add_item(
    order_id: str,
    req: OrderItemRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.WAITER)),
    ctx: AppContext = Depends(get_context),
):
    """加菜，定制完全相同的菜品合并数量"""
    order = ctx.order_service.add_item(order_id, _build_item(ctx, req), actor_id=staff.staff_id)
    return create_success_response(_order_data(ctx, order), "加菜成功")


@router.patch("/{order_id}/items")
def adjust_item(
    order_id: str,
    req: ItemQuantityRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.WAITER)),
    ctx: AppContext = Depends(get_context),
):
    """增减菜品数量"""
    order = ctx.order_service.adjust_item_quantity(
        order_id, req.to_key(), req.delta, actor_id=staff.staff_id
    )
    return create_success_response(_order_data(ctx, order), "修改成功")


@router.delete("/{order_id}/items")
def remove_item(
    order_id: str,
    req: ItemKeyRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.WAITER)),
    ctx: AppContext = Depends(get_context),
):
    """删除菜品行"""
    order = ctx.order_service.remove_item(order_id, req.to_key(), actor_id=staff.staff_id)
    return create_success_response(_order_data(ctx, order), "删除成功")


@router.post("/{order_id}/status")
def change_status(
    order_id: str,
    req: OrderStatusRequest,
    staff: StaffIdentity = Depends(require_roles(
        UserRole.WAITER, UserRole.KITCHEN, UserRole.CASHIER, UserRole.MANAGER
    )),
    ctx: AppContext = Depends(get_context),
):
    """修改订单状态"""
    order = ctx.order_service.change_status(order_id, req.status, actor_id=staff.staff_id)
    return create_success_response(_order_data(ctx, order), "状态已更新")


@router.delete("/{order_id}")
def cancel_order(
    order_id: str,
    staff: StaffIdentity = Depends(require_roles(UserRole.CASHIER, UserRole.MANAGER)),
    ctx: AppContext = Depends(get_context),
):
    """取消订单"""
    order = ctx.order_service.cancel_order(order_id, actor_id=staff.staff_id)
    return create_success_response(_order_data(ctx, order), "订单已取消")


@router.post("/{order_id}/pay")
def pay_order(
    order_id: str,
    req: PaymentRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.CASHIER)),
    ctx: AppContext = Depends(get_context),
):
    """结账"""
    order = ctx.payment_service.pay(
        order_id, req.payment_method, req.paid_amount, actor_id=staff.staff_id
    )
    return create_success_response(_order_data(ctx, order), "结账成功")


@router.post("/{order_id}/split/preview")
def preview_split(
    order_id: str,
    req: SplitRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.CASHIER)),
    ctx: AppContext = Depends(get_context),
):
    """分账预览，不保存"""
    splitter = ctx.split_service.preview_split(order_id, req.assignments(), req.participants)
    return create_success_response(
        SplitPreviewResponse.from_splitter(splitter).model_dump(mode="json"), "预览成功"
    )


@router.post("/{order_id}/split")
def split_order(
    order_id: str,
    req: SplitRequest,
    staff: StaffIdentity = Depends(require_roles(UserRole.CASHIER)),
    ctx: AppContext = Depends(get_context),
):
    """提交分账，为每个人生成一张子订单"""
    children = ctx.split_service.split_order(
        order_id, req.assignments(), req.participants, actor_id=staff.staff_id
    )
    return create_success_response([_order_data(ctx, c) for c in children], "分账成功")
