"""
统一错误处理模块
提供标准化的错误响应格式和错误处理中间件

主要功能：
- 统一的错误响应格式
- 自动异常捕获和日志记录
- HTTP状态码映射（先查错误码，再按异常类型兜底）
"""

import traceback
from typing import Dict, Any, Optional
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from .exceptions import (
    AuthenticationError,
    BaseApplicationError,
    NotFoundError,
    PermissionDeniedError,
    RemoteFailure,
)


class ErrorResponse:
    """标准错误响应格式"""

    def __init__(self, error_code: str, message: str,
                 details: Optional[Dict[str, Any]] = None,
                 http_status: int = 400):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def to_json_response(self) -> JSONResponse:
        """转换为FastAPI JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )


class ErrorHandler:
    """全局错误处理器"""

    # 错误代码到HTTP状态码的映射
    ERROR_CODE_STATUS_MAP = {
        "VALIDATION_ERROR": 400,
        "AUTHENTICATION_REQUIRED": 401,
        "PERMISSION_DENIED": 403,
        "RESOURCE_NOT_FOUND": 404,
        "INTERNAL_ERROR": 500,

        # 订单相关错误
        "ORDER_NOT_FOUND": 404,
        "MENU_ITEM_NOT_FOUND": 404,
        "INVALID_QUANTITY": 400,
        "INVALID_CUSTOMIZATION": 400,
        "TABLE_NUMBER_REQUIRED": 400,
        "ORDER_ITEMS_REQUIRED": 400,
        "ORDER_NOT_EDITABLE": 409,
        "ORDER_STATUS_TRANSITION_INVALID": 409,
        "PAYMENT_METHOD_REQUIRED": 400,
        "INSUFFICIENT_PAYMENT": 422,

        # 分账相关错误
        "INVALID_PARTICIPANTS": 400,
        "ORDER_NOT_SPLITTABLE": 409,
        "ORDER_ALREADY_SPLIT": 409,
        "OVER_ASSIGNMENT": 422,
        "INCOMPLETE_DISTRIBUTION": 422,
        "SPLIT_ITEM_NOT_IN_ORDER": 422,
        "SPLIT_ITEM_NOT_FOUND": 404,
        "SPLIT_INDEX_OUT_OF_RANGE": 400,

        # 收银台相关错误
        "REGISTER_ALREADY_OPEN": 409,
        "NO_OPEN_REGISTER": 409,
        "INVALID_AMOUNT": 400,

        "INVALID_DATE_RANGE": 400,
    }

    @classmethod
    def status_for(cls, error: BaseApplicationError) -> int:
        if error.error_code in cls.ERROR_CODE_STATUS_MAP:
            return cls.ERROR_CODE_STATUS_MAP[error.error_code]
        if isinstance(error, NotFoundError):
            return 404
        if isinstance(error, AuthenticationError):
            return 401
        if isinstance(error, PermissionDeniedError):
            return 403
        if isinstance(error, RemoteFailure):
            return 503
        return 400

    @classmethod
    def handle_application_error(cls, error: BaseApplicationError) -> ErrorResponse:
        """处理应用业务异常"""
        return ErrorResponse(
            error_code=error.error_code,
            message=error.message,
            details=error.details,
            http_status=cls.status_for(error)
        )

    @classmethod
    def handle_http_exception(cls, error: HTTPException) -> ErrorResponse:
        """处理FastAPI HTTP异常"""
        return ErrorResponse(
            error_code="HTTP_ERROR",
            message=str(error.detail),
            details={"status_code": error.status_code},
            http_status=error.status_code
        )

    @classmethod
    def handle_validation_error(cls, error: Exception) -> ErrorResponse:
        """处理Pydantic验证错误"""
        errors = error.errors() if hasattr(error, "errors") else str(error)
        return ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="请求参数验证失败",
            details={"validation_errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
            ] if isinstance(errors, list) else errors},
            http_status=422
        )

    @classmethod
    def handle_unknown_error(cls, error: Exception, request: Optional[Request] = None) -> ErrorResponse:
        """处理未知异常"""
        error_details = {
            "type": type(error).__name__,
            "message": str(error),
            "traceback": traceback.format_exc()
        }
        cls._log_system_error(request, error_details)

        return ErrorResponse(
            error_code="INTERNAL_ERROR",
            message="系统内部错误",
            details={"error_type": type(error).__name__},
            http_status=500
        )

    @classmethod
    def _log_system_error(cls, request: Optional[Request], error_details: Dict[str, Any]):
        """记录系统错误到操作日志"""
        context = getattr(request.app.state, "context", None) if request is not None else None
        if context is None:
            print(f"System error: {error_details}")
            return
        try:
            context.logs.write("system_error", error_details)
        except BaseApplicationError:
            # 如果连日志都写不了，就只能打印到控制台
            print(f"Failed to log error to database: {error_details}")


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    """应用异常处理中间件"""
    error_response = ErrorHandler.handle_application_error(exc)
    return error_response.to_json_response()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTP异常处理中间件"""
    error_response = ErrorHandler.handle_http_exception(exc)
    return error_response.to_json_response()


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """验证异常处理中间件"""
    error_response = ErrorHandler.handle_validation_error(exc)
    return error_response.to_json_response()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """通用异常处理中间件"""
    error_response = ErrorHandler.handle_unknown_error(exc, request)
    return error_response.to_json_response()


def create_success_response(data: Any = None, message: str = "操作成功") -> Dict[str, Any]:
    """创建标准成功响应"""
    response = {
        "success": True,
        "message": message
    }

    if data is not None:
        response["data"] = data

    return response
