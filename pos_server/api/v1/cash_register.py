"""
收银台路由模块
"""

from fastapi import APIRouter, Depends, Query

from ...schemas.cash_register import CashRegisterResponse, RegisterCloseRequest, RegisterOpenRequest
from ...core.context import AppContext, get_context
from ...core.error_handler import create_success_response
from ...core.security import require_roles
from ...models.user import StaffIdentity, UserRole

router = APIRouter()

_register_staff = require_roles(UserRole.CASHIER, UserRole.MANAGER)


@router.get("/current")
def current_register(
    staff: StaffIdentity = Depends(_register_staff),
    ctx: AppContext = Depends(get_context),
):
    """当前开启的收银台，没有时 data 为 null"""
    session = ctx.register_service.current()
    if session is None:
        return {"success": True, "message": "没有开启的收银台", "data": None}
    return create_success_response(
        CashRegisterResponse.from_session(session).model_dump(mode="json"), "查询成功"
    )


@router.post("/open")
def open_register(
    req: RegisterOpenRequest,
    staff: StaffIdentity = Depends(_register_staff),
    ctx: AppContext = Depends(get_context),
):
    """开启收银台"""
    session = ctx.register_service.open(req.initial_amount, req.notes, actor_id=staff.staff_id)
    return create_success_response(
        CashRegisterResponse.from_session(session).model_dump(mode="json"), "收银台已开启"
    )


@router.post("/close")
def close_register(
    req: RegisterCloseRequest,
    staff: StaffIdentity = Depends(_register_staff),
    ctx: AppContext = Depends(get_context),
):
    """关闭收银台并计算差额"""
    session = ctx.register_service.close(req.final_amount, req.notes, actor_id=staff.staff_id)
    return create_success_response(
        CashRegisterResponse.from_session(session).model_dump(mode="json"), "收银台已关闭"
    )


@router.get("/history")
def register_history(
    limit: int = Query(30, ge=1, le=200, description="返回条数"),
    staff: StaffIdentity = Depends(_register_staff),
    ctx: AppContext = Depends(get_context),
):
    """收银台历史，最新的在前"""
    sessions = ctx.register_service.history(limit)
    return create_success_response(
        [CashRegisterResponse.from_session(s).model_dump(mode="json") for s in sessions], "查询成功"
    )
