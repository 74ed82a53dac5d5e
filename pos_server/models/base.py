"""
基础数据模型
定义通用的模型基类、时间戳字段和金额展示工具
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


CENT = Decimal("0.01")


def money_display(value: Optional[Decimal]) -> Optional[Decimal]:
    """金额展示：只在输出时四舍五入到两位小数"""
    if value is None:
        return None
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class TimestampMixin(BaseModel):
    """时间戳混入类"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BaseEntity(BaseModel):
    """基础实体模型"""

    model_config = {"from_attributes": True}
