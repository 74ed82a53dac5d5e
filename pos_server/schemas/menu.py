"""
菜单响应模式
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List

from ..models.base import money_display
from ..models.menu import MeatPoint, MenuItem


class MenuItemResponse(BaseModel):
    """菜品响应"""
    id: str
    name: str
    description: str = ""
    price: Decimal
    category: str
    prep_time: int
    allergens: List[str] = Field(default_factory=list)
    has_meat_point: bool = False
    meat_points: List[str] = Field(default_factory=list, description="可选熟度")
    customizable_items: List[str] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: MenuItem) -> "MenuItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            price=money_display(item.price),
            category=item.category,
            prep_time=item.prep_time,
            allergens=sorted(item.allergens),
            has_meat_point=item.has_meat_point,
            meat_points=[p.value for p in MeatPoint] if item.has_meat_point else [],
            customizable_items=list(item.customizable_items),
        )
