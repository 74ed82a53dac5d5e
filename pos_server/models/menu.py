"""
菜单相关数据模型
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .base import BaseEntity


class MeatPoint(str, Enum):
    """牛排熟度枚举"""
    RARE = "Mal passado"
    MEDIUM_RARE = "Ao ponto para mal"
    MEDIUM = "Ao ponto"
    MEDIUM_WELL = "Ao ponto para bem"
    WELL_DONE = "Bem passado"


class MenuItem(BaseEntity):
    """菜单条目（配置产生，运行期不可变）"""

    model_config = {"from_attributes": True, "frozen": True}

    id: str = Field(..., description="菜品ID")
    name: str = Field(..., description="菜品名称")
    description: str = Field("", description="菜品描述")
    price: Decimal = Field(..., ge=0, decimal_places=2, description="单价")
    category: str = Field(..., description="分类")
    prep_time: int = Field(0, ge=0, description="准备时间（分钟）")
    allergens: FrozenSet[str] = Field(default_factory=frozenset, description="过敏原")
    has_meat_point: bool = Field(False, description="是否可选熟度")
    customizable_items: Tuple[str, ...] = Field(default_factory=tuple, description="可去除的配料")

    @field_validator("customizable_items")
    @classmethod
    def validate_customizable_items(cls, v):
        """可去除配料不能重复"""
        if len(v) != len(set(v)):
            raise ValueError("可去除配料不能重复")
        return v


class MenuCatalog:
    """菜单目录，按ID索引"""

    def __init__(self, items: List[MenuItem]):
        self._items: Dict[str, MenuItem] = {}
        for item in items:
            if item.id in self._items:
                raise ValueError(f"菜品ID重复: {item.id}")
            self._items[item.id] = item

    @classmethod
    def from_config(cls, raw_items: List[dict]) -> "MenuCatalog":
        return cls([MenuItem.model_validate(raw) for raw in raw_items])

    def get(self, menu_item_id: str) -> Optional[MenuItem]:
        return self._items.get(menu_item_id)

    def all(self) -> List[MenuItem]:
        return list(self._items.values())

    def categories(self) -> List[str]:
        seen: List[str] = []
        for item in self._items.values():
            if item.category not in seen:
                seen.append(item.category)
        return seen

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, menu_item_id: str) -> bool:
        return menu_item_id in self._items
