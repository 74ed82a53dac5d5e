"""
订单菜品行匹配规则

两行菜品当且仅当 (菜品ID, 备注, 熟度, 排序后的去除配料) 相同时视为同一行。
合并、增减数量、删除都基于这一身份键，结果列表中不会出现两行相同身份的菜品。
所有函数返回新列表，不修改传入的列表和菜品行。
"""

from typing import List, Optional

from ..models.order import ItemKey, OrderItem


def matches(a: OrderItem, b: OrderItem) -> bool:
    """两行菜品是否为同一身份"""
    return a.key == b.key


def find_index(items: List[OrderItem], key: ItemKey) -> Optional[int]:
    """返回身份键对应的行下标，不存在时返回 None"""
    for index, item in enumerate(items):
        if item.key == key:
            return index
    return None


def merge_or_append(items: List[OrderItem], new_item: OrderItem) -> List[OrderItem]:
    """已存在相同身份的行则累加数量，否则追加"""
    result = list(items)
    index = find_index(result, new_item.key)
    if index is None:
        result.append(new_item.model_copy())
    else:
        existing = result[index]
        result[index] = existing.model_copy(update={"quantity": existing.quantity + new_item.quantity})
    return result


def merge_all(items: List[OrderItem]) -> List[OrderItem]:
    """把任意列表规整为无重复身份的列表，保持首次出现的顺序"""
    result: List[OrderItem] = []
    for item in items:
        result = merge_or_append(result, item)
    return result


def adjust_quantity(items: List[OrderItem], key: ItemKey, delta: int) -> List[OrderItem]:
    """
    调整匹配行的数量

    数量降到 0 及以下时删除该行；找不到匹配行时原样返回（界面只会对已显示的行发起调整）
    """
    result = list(items)
    index = find_index(result, key)
    if index is None:
        return result
    quantity = result[index].quantity + delta
    if quantity <= 0:
        del result[index]
    else:
        result[index] = result[index].model_copy(update={"quantity": quantity})
    return result


def remove(items: List[OrderItem], key: ItemKey) -> List[OrderItem]:
    """删除所有匹配行"""
    return [item for item in items if item.key != key]
