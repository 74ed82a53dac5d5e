"""
菜单路由模块
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from ...schemas.menu import MenuItemResponse
from ...core.context import AppContext, get_context
from ...core.error_handler import create_success_response
from ...core.security import get_current_staff
from ...models.user import StaffIdentity

router = APIRouter()


@router.get("")
def list_menu(
    category: Optional[str] = Query(None, description="按分类筛选"),
    staff: StaffIdentity = Depends(get_current_staff),
    ctx: AppContext = Depends(get_context),
):
    """菜单列表（任意角色可查）"""
    items = [i for i in ctx.catalog.all() if category is None or i.category == category]
    return create_success_response({
        "categories": ctx.catalog.categories(),
        "items": [MenuItemResponse.from_item(i).model_dump(mode="json") for i in items],
    }, "查询成功")
