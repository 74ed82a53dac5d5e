"""
报表路由模块
"""

from datetime import date
from fastapi import APIRouter, Depends, Query

from ...schemas.report import SalesReportResponse, SummaryResponse
from ...core.context import AppContext, get_context
from ...core.error_handler import create_success_response
from ...core.security import require_roles
from ...models.user import StaffIdentity, UserRole

router = APIRouter()


@router.get("/sales")
def sales_report(
    start_date: date = Query(..., description="开始日期 YYYY-MM-DD"),
    end_date: date = Query(..., description="结束日期 YYYY-MM-DD（含）"),
    staff: StaffIdentity = Depends(require_roles(UserRole.MANAGER)),
    ctx: AppContext = Depends(get_context),
):
    """按日汇总的销售报表"""
    report = ctx.report_service.sales_report(start_date, end_date)
    return create_success_response(
        SalesReportResponse.model_validate(report).model_dump(mode="json"), "查询成功"
    )


@router.get("/summary")
def summary(
    staff: StaffIdentity = Depends(require_roles(UserRole.MANAGER)),
    ctx: AppContext = Depends(get_context),
):
    """收银面板汇总"""
    return create_success_response(
        SummaryResponse.model_validate(ctx.report_service.summary()).model_dump(mode="json"),
        "查询成功"
    )
