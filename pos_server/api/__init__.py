"""
API routes and endpoints.
"""

from fastapi import APIRouter

from ..schemas.common import ErrorResponse
from .v1 import cash_register, kitchen, menu, orders, reports

# 所有接口共用的错误响应文档
_error_responses = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 422, 503)
}

api_router = APIRouter(responses=_error_responses)

# 包含所有v1路由
api_router.include_router(menu.router, prefix="/menu", tags=["菜单"])
api_router.include_router(orders.router, prefix="/orders", tags=["订单"])
api_router.include_router(kitchen.router, prefix="/kitchen", tags=["厨房"])
api_router.include_router(cash_register.router, prefix="/cash-register", tags=["收银台"])
api_router.include_router(reports.router, prefix="/reports", tags=["报表"])
