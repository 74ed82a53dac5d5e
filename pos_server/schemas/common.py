from typing import Any, Dict
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """错误响应格式"""
    success: bool = Field(False, description="请求失败")
    message: str = Field(description="错误消息")
    error_code: str = Field(description="错误码")
    details: Dict[str, Any] = Field(default_factory=dict, description="错误详情")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "无法从 paid 转换到 pending",
                "error_code": "ORDER_STATUS_TRANSITION_INVALID",
                "details": {"current_status": "paid", "target_status": "pending"}
            }
        }
    }
