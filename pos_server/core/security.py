"""
安全相关功能
JWT 令牌签发与校验，角色在这里解析一次后以 StaffIdentity 注入路由
"""

import jwt
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.settings import Settings
from ..models.user import StaffIdentity, UserRole, parse_roles
from .context import AppContext, get_context
from .exceptions import AuthenticationError, PermissionDeniedError


class SecurityManager:
    """安全管理器"""

    def __init__(self, settings: Settings):
        self.secret = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.expire_hours = settings.jwt_expire_hours

    def create_jwt_token(self, staff_id: str, roles: Iterable[str],
                         additional_claims: Dict[str, Any] = None) -> str:
        """创建JWT token，roles 以列表形式写入"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": staff_id,
            "roles": sorted(role.value for role in parse_roles(list(roles))),
            "exp": now + timedelta(hours=self.expire_hours),
            "iat": now,
        }
        if additional_claims:
            payload.update(additional_claims)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        """解码JWT token"""
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}")

    def identity_from_token(self, token: str) -> StaffIdentity:
        """从token中解析员工身份"""
        payload = self.decode_jwt_token(token)
        staff_id = payload.get("sub")
        if not staff_id:
            raise AuthenticationError("Token missing sub")
        return StaffIdentity(staff_id=str(staff_id), roles=parse_roles(payload.get("roles")))


_bearer = HTTPBearer(auto_error=False)


async def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    ctx: AppContext = Depends(get_context),
) -> StaffIdentity:
    """从Authorization header中提取并验证员工身份"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("missing bearer token")
    return SecurityManager(ctx.settings).identity_from_token(credentials.credentials)


def require_roles(*roles: UserRole) -> Callable:
    """路由依赖：当前员工至少拥有其中一个角色"""

    async def dependency(staff: StaffIdentity = Depends(get_current_staff)) -> StaffIdentity:
        if not staff.has_any(*roles):
            raise PermissionDeniedError(
                "无权执行此操作",
                {"required_roles": [r.value for r in roles]}
            )
        return staff

    return dependency
