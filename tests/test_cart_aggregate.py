"""
Unit tests for the Cart aggregate: merge, clamping, removal and totals.
No database is involved; carts are plain transient objects.
"""
from decimal import Decimal

import pytest

from common.exceptions import ItemNotFoundError
from modules.cart.models import Cart


def assert_totals_consistent(cart: Cart):
    items = list(cart.items.values())
    assert cart.total_items == sum(i.quantity for i in items)
    assert cart.total_price == sum((i.unit_price * i.quantity for i in items), Decimal("0"))


@pytest.fixture
def cart():
    return Cart(user_id=1)


class TestEmptyCart:

    def test_new_cart_has_zero_totals(self, cart):
        assert cart.total_items == 0
        assert cart.total_price == Decimal("0")
        assert cart.ordered_items == []

    def test_clear_on_empty_cart(self, cart):
        cart.clear()
        assert cart.total_items == 0
        assert cart.total_price == Decimal("0")


class TestAddItem:

    def test_add_new_line(self, cart):
        cart.add_item(7, 2, Decimal("10.00"))

        assert cart.has_item(7)
        assert cart.items[7].quantity == 2
        assert cart.items[7].unit_price == Decimal("10.00")
        assert cart.total_items == 2
        assert cart.total_price == Decimal("20.00")

    def test_merge_sums_quantity(self, cart):
        cart.add_item(7, 2, Decimal("10.00"))
        cart.add_item(7, 3, Decimal("10.00"))

        assert len(cart.items) == 1
        assert cart.items[7].quantity == 5
        assert cart.total_price == Decimal("50.00")

    def test_merge_keeps_original_price(self, cart):
        cart.add_item(7, 1, Decimal("10.00"))
        cart.add_item(7, 1, Decimal("12.50"))

        assert cart.items[7].unit_price == Decimal("10.00")
        assert cart.total_price == Decimal("20.00")

    def test_merge_clamps_at_100(self, cart):
        for _ in range(3):
            cart.add_item(3, 40, Decimal("3.50"))

        assert cart.items[3].quantity == 100
        assert cart.total_items == 100
        assert cart.total_price == Decimal("350.00")

    def test_new_line_is_clamped_to_range(self, cart):
        cart.add_item(1, 250, Decimal("1.00"))
        cart.add_item(2, 0, Decimal("1.00"))

        assert cart.items[1].quantity == 100
        assert cart.items[2].quantity == 1

    def test_one_line_per_product(self, cart):
        cart.add_item(1, 1, Decimal("1.00"))
        cart.add_item(2, 1, Decimal("2.00"))
        cart.add_item(1, 1, Decimal("1.00"))

        assert sorted(cart.items.keys()) == [1, 2]

    def test_lines_keep_insertion_order(self, cart):
        for pid in (5, 2, 9):
            cart.add_item(pid, 1, Decimal("1.00"))

        assert [i.product_id for i in cart.ordered_items] == [5, 2, 9]

    def test_price_is_rounded_to_cents(self, cart):
        cart.add_item(1, 3, Decimal("0.333"))

        assert cart.items[1].unit_price == Decimal("0.33")
        assert cart.total_price == Decimal("0.99")


class TestUpdateItemQuantity:

    def test_sets_quantity(self, cart):
        cart.add_item(1, 2, Decimal("4.00"))
        cart.update_item_quantity(1, 7)

        assert cart.items[1].quantity == 7
        assert cart.total_price == Decimal("28.00")

    def test_clamps_to_100(self, cart):
        cart.add_item(1, 2, Decimal("1.00"))
        cart.update_item_quantity(1, 500)

        assert cart.items[1].quantity == 100

    @pytest.mark.parametrize("quantity", [0, -1, -50])
    def test_zero_or_negative_removes_line(self, cart, quantity):
        cart.add_item(1, 2, Decimal("1.00"))
        cart.add_item(2, 1, Decimal("5.00"))

        cart.update_item_quantity(1, quantity)

        assert not cart.has_item(1)
        assert cart.total_items == 1
        assert cart.total_price == Decimal("5.00")

    def test_zero_on_absent_line_is_noop(self, cart):
        cart.add_item(1, 2, Decimal("1.00"))
        cart.update_item_quantity(99, 0)

        assert cart.total_items == 2

    def test_positive_on_absent_line_raises(self, cart):
        with pytest.raises(ItemNotFoundError):
            cart.update_item_quantity(99, 1)


class TestRemoveAndClear:

    def test_remove_is_idempotent(self, cart):
        cart.add_item(1, 2, Decimal("1.00"))
        cart.add_item(2, 3, Decimal("2.00"))

        cart.remove_item(1)
        first = (cart.total_items, cart.total_price, list(cart.items.keys()))
        cart.remove_item(1)
        second = (cart.total_items, cart.total_price, list(cart.items.keys()))

        assert first == second == (3, Decimal("6.00"), [2])

    def test_remove_absent_product(self, cart):
        cart.remove_item(42)
        assert cart.total_items == 0

    def test_clear_resets_totals(self, cart):
        cart.add_item(1, 2, Decimal("1.00"))
        cart.add_item(2, 3, Decimal("2.00"))

        cart.clear()

        assert cart.items == {}
        assert cart.total_items == 0
        assert cart.total_price == Decimal("0")


def test_totals_stay_consistent_across_mixed_operations(cart):
    steps = [
        ("add", 1, 3, "9.99"),
        ("add", 2, 60, "0.50"),
        ("add", 2, 60, "0.75"),
        ("update", 1, 10),
        ("add", 3, 1, "100.00"),
        ("remove", 2),
        ("update", 3, 0),
        ("add", 4, 5, "2.20"),
        ("remove", 2),
        ("update", 4, 101),
    ]
    for step in steps:
        op = step[0]
        if op == "add":
            cart.add_item(step[1], step[2], Decimal(step[3]))
        elif op == "update":
            cart.update_item_quantity(step[1], step[2])
        else:
            cart.remove_item(step[1])
        assert_totals_consistent(cart)
        assert all(1 <= i.quantity <= 100 for i in cart.items.values())

    assert cart.total_items == 110
    assert cart.total_price == Decimal("319.90")
