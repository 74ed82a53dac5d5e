"""
菜品行匹配规则测试
"""

from pos_server.models.menu import MeatPoint
from pos_server.models.order import OrderItem, items_total
from pos_server.services import item_matcher


class TestItemMatcher:
    """菜品身份键与合并规则"""

    def test_removed_items_order_does_not_matter(self, picanha):
        a = OrderItem.from_menu_item(picanha, 1, removed_items=["Farofa", "Arroz"])
        b = OrderItem.from_menu_item(picanha, 1, removed_items=["Arroz", "Farofa"])
        assert item_matcher.matches(a, b)

    def test_different_meat_point_is_different_line(self, picanha):
        a = OrderItem.from_menu_item(picanha, 1, meat_point=MeatPoint.RARE)
        b = OrderItem.from_menu_item(picanha, 1, meat_point=MeatPoint.WELL_DONE)
        assert not item_matcher.matches(a, b)

    def test_different_notes_is_different_line(self, carbonara):
        a = OrderItem.from_menu_item(carbonara, 1, notes="sem sal")
        b = OrderItem.from_menu_item(carbonara, 1)
        assert not item_matcher.matches(a, b)

    def test_merge_or_append_sums_quantity(self, picanha):
        """相同身份的菜品合并后只保留一行"""
        line = OrderItem.from_menu_item(picanha, 1, meat_point=MeatPoint.MEDIUM)
        items = item_matcher.merge_or_append([line], line.model_copy(update={"quantity": 2}))
        assert len(items) == 1
        assert items[0].quantity == 3
        # 原列表不被修改
        assert line.quantity == 1

    def test_merge_or_append_appends_new_identity(self, picanha, salmon):
        items = item_matcher.merge_or_append(
            [OrderItem.from_menu_item(picanha, 1)], OrderItem.from_menu_item(salmon, 1)
        )
        assert [i.menu_item_id for i in items] == ["1", "2"]

    def test_merge_all_keeps_first_occurrence_order(self, picanha, salmon):
        items = item_matcher.merge_all([
            OrderItem.from_menu_item(salmon, 1),
            OrderItem.from_menu_item(picanha, 2),
            OrderItem.from_menu_item(salmon, 2),
        ])
        assert [(i.menu_item_id, i.quantity) for i in items] == [("2", 3), ("1", 2)]

    def test_adjust_quantity_to_zero_removes_line(self, picanha, salmon):
        items = [OrderItem.from_menu_item(picanha, 1), OrderItem.from_menu_item(salmon, 2)]
        result = item_matcher.adjust_quantity(items, items[0].key, -1)
        assert [i.menu_item_id for i in result] == ["2"]

    def test_adjust_quantity_unknown_key_is_noop(self, picanha):
        items = [OrderItem.from_menu_item(picanha, 2)]
        result = item_matcher.adjust_quantity(items, ("99", "", None, ()), 1)
        assert result == items

    def test_adjust_quantity_keeps_total_consistent(self, picanha, carbonara):
        items = [OrderItem.from_menu_item(picanha, 1), OrderItem.from_menu_item(carbonara, 1)]
        result = item_matcher.adjust_quantity(items, items[1].key, 2)
        assert items_total(result) == picanha.price + carbonara.price * 3

    def test_remove_deletes_matching_line(self, picanha, salmon):
        items = [OrderItem.from_menu_item(picanha, 1), OrderItem.from_menu_item(salmon, 1)]
        result = item_matcher.remove(items, items[1].key)
        assert len(result) == 1
        assert result[0].menu_item_id == "1"
