"""
订单状态机

pending → preparing → ready → delivered → paid，任意非终态都可以直接取消。
paid 与 cancelled 为终态，不可恢复。
"""

from typing import Dict, FrozenSet

from ..core.exceptions import InvalidTransitionError
from ..models.order import OrderStatus


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.PAID, OrderStatus.CANCELLED})

VALID_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in VALID_TRANSITIONS[current]


def allowed_transitions(current: OrderStatus) -> FrozenSet[OrderStatus]:
    return VALID_TRANSITIONS[current]


class OrderLifecycle:
    """
    状态转换校验器

    strict=False 时恢复宽松行为：只要目标状态合法即可写入，不校验转换路径
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def validate(self, current: OrderStatus, target: OrderStatus) -> None:
        if not self.strict:
            return
        if not can_transition(current, target):
            raise InvalidTransitionError(current.value, target.value)
