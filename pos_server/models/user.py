"""
员工身份与角色模型
角色在令牌边界解析一次，之后只以 frozenset[UserRole] 形式流转
"""

from enum import Enum
from typing import FrozenSet, Iterable, Union

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """员工角色枚举"""
    ADMIN = "admin"         # 管理员
    MANAGER = "manager"     # 经理
    CASHIER = "cashier"     # 收银
    WAITER = "waiter"       # 服务员
    KITCHEN = "kitchen"     # 厨房
    STOCK = "stock"         # 库存


ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)


def parse_roles(raw: Union[str, Iterable[str], None]) -> FrozenSet[UserRole]:
    """
    解析角色：支持逗号拼接字符串或字符串列表

    未知角色直接忽略；admin 拥有全部角色
    """
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = []
        for value in raw:
            value = value.value if isinstance(value, UserRole) else str(value)
            parts.extend(value.split(","))

    known = {role.value: role for role in UserRole}
    roles = frozenset(known[p.strip()] for p in parts if p.strip() in known)
    if UserRole.ADMIN in roles:
        return ALL_ROLES
    return roles


class StaffIdentity(BaseModel):
    """当前请求的员工身份"""
    staff_id: str = Field(..., description="员工ID")
    roles: FrozenSet[UserRole] = Field(default_factory=frozenset, description="角色集合")

    def has_any(self, *roles: UserRole) -> bool:
        return bool(self.roles.intersection(roles))
