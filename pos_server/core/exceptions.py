"""
自定义异常类
提供更精确的错误处理和异常信息

错误分三类：
- NotFound: 引用的记录不存在
- ValidationError: 当前状态下不允许的操作
- RemoteFailure: 存储层调用失败
所有异常都在用户操作边界被捕获，以非阻塞通知的形式返回，不做自动重试。
"""

from typing import Any, Dict


class BaseApplicationError(Exception):
    """应用基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BaseApplicationError):
    """资源不存在异常"""

    def __init__(self, message: str = "资源不存在", error_code: str = "RESOURCE_NOT_FOUND",
                 details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class OrderNotFoundError(NotFoundError):
    """订单不存在异常"""

    def __init__(self, order_id: str):
        super().__init__("订单不存在", "ORDER_NOT_FOUND", {"order_id": order_id})


class RecordNotFoundError(NotFoundError):
    """存储记录不存在异常"""

    def __init__(self, collection: str, record_id: str):
        super().__init__(
            f"{collection} 中不存在记录 {record_id}",
            "RECORD_NOT_FOUND",
            {"collection": collection, "id": record_id}
        )


class ValidationError(BaseApplicationError):
    """数据验证异常"""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR",
                 details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class InvalidTransitionError(ValidationError):
    """订单状态转换非法"""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"无法从 {current} 转换到 {target}",
            "ORDER_STATUS_TRANSITION_INVALID",
            {"current_status": current, "target_status": target}
        )


class OrderNotEditableError(ValidationError):
    """订单已不可修改"""

    def __init__(self, order_id: str, status: str):
        super().__init__(
            f"订单状态为{status}，无法修改菜品",
            "ORDER_NOT_EDITABLE",
            {"order_id": order_id, "status": status}
        )


class IncompleteDistributionError(ValidationError):
    """分账时仍有菜品未分配"""

    def __init__(self, assigned: int, expected: int):
        super().__init__(
            "请先分配所有菜品再分账",
            "INCOMPLETE_DISTRIBUTION",
            {"assigned_quantity": assigned, "order_quantity": expected}
        )


class OverAssignmentError(ValidationError):
    """分配数量超过剩余未分配数量"""

    def __init__(self, menu_item_id: str, requested: int, remaining: int):
        super().__init__(
            "分配数量超过剩余数量",
            "OVER_ASSIGNMENT",
            {"menu_item_id": menu_item_id, "requested": requested, "remaining": remaining}
        )


class InsufficientPaymentError(ValidationError):
    """实收金额不足"""

    def __init__(self, paid_amount, total):
        super().__init__(
            "实收金额小于订单金额",
            "INSUFFICIENT_PAYMENT",
            {"paid_amount": str(paid_amount), "total": str(total)}
        )


class RegisterAlreadyOpenError(ValidationError):
    """已有开启的收银台"""

    def __init__(self, register_id: str = None):
        super().__init__(
            "已有开启的收银台，请先关闭",
            "REGISTER_ALREADY_OPEN",
            {"register_id": register_id} if register_id else None
        )


class NoOpenRegisterError(ValidationError):
    """没有开启的收银台"""

    def __init__(self, message: str = "没有开启的收银台"):
        super().__init__(message, "NO_OPEN_REGISTER")


class RemoteFailure(BaseApplicationError):
    """存储层调用失败"""
    pass


class DatabaseError(RemoteFailure):
    """数据库相关异常"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "DATABASE_ERROR", details)


class DuplicateRecordError(RemoteFailure):
    """唯一约束冲突"""

    def __init__(self, collection: str, message: str = "记录已存在"):
        super().__init__(message, "DUPLICATE_RECORD", {"collection": collection})


class AuthenticationError(BaseApplicationError):
    """认证相关异常"""

    def __init__(self, message: str):
        super().__init__(message, "AUTHENTICATION_REQUIRED")


class PermissionDeniedError(BaseApplicationError):
    """权限拒绝错误"""

    def __init__(self, message: str = "无权执行此操作", details: Dict[str, Any] = None):
        super().__init__(message, "PERMISSION_DENIED", details)
