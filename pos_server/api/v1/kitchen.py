"""
厨房路由模块
"""

from datetime import datetime
from fastapi import APIRouter, Depends

from ...schemas.order import KitchenQueueEntry
from ...core.context import AppContext, get_context
from ...core.error_handler import create_success_response
from ...core.security import require_roles
from ...models.user import StaffIdentity, UserRole

router = APIRouter()


@router.get("/queue")
def kitchen_queue(
    staff: StaffIdentity = Depends(require_roles(UserRole.KITCHEN)),
    ctx: AppContext = Depends(get_context),
):
    """厨房队列：pending 和 preparing 两列，最早下单的在前"""
    queue = ctx.order_service.kitchen_queue(datetime.now())
    data = {
        status: [KitchenQueueEntry.from_entry(e).model_dump(mode="json") for e in entries]
        for status, entries in queue.items()
    }
    return create_success_response(data, "查询成功")
