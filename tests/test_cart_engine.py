"""
Tests for cart reconciliation and cart evaluation metrics.
"""
import pytest

from cart_engine import (
    Cart,
    CartEntry,
    CartEvaluator,
    OperationType,
    ResolvedOperation,
    add_to_cart,
    remove_from_cart,
)
from menu_data import CatalogItem


@pytest.fixture
def naan(item_named):
    return item_named("Naan")


@pytest.fixture
def samosa(item_named):
    return item_named("Samosa")


@pytest.fixture
def filled_cart(naan, samosa):
    return Cart((
        CartEntry(naan.id, naan.name, naan.price, 3),
        CartEntry(samosa.id, samosa.name, samosa.price, 2),
    ))


class TestCart:
    """Tests for the immutable cart snapshot."""

    def test_empty_cart(self):
        cart = Cart()
        assert cart.is_empty
        assert cart.total == 0
        assert cart.item_count == 0

    def test_totals(self, filled_cart):
        assert filled_cart.item_count == 5
        assert filled_cart.total == 3 * 50 + 2 * 40

    def test_to_dict(self, filled_cart):
        data = filled_cart.to_dict()
        assert data["item_count"] == 5
        assert data["total"] == 230
        assert data["items"][0] == {
            "item_id": "12", "name": "Naan", "price": 50, "quantity": 3, "subtotal": 150,
        }

    def test_quantity_of_missing_item(self, filled_cart):
        assert filled_cart.quantity_of("999") == 0
        assert filled_cart.get("999") is None


class TestCartHelpers:
    """Tests for add_to_cart() and remove_from_cart()."""

    def test_add_then_add_merges(self, naan):
        once = add_to_cart(add_to_cart(Cart(), naan, 2), naan, 3)
        merged = add_to_cart(Cart(), naan, 5)
        assert once == merged
        assert len(once.entries) == 1

    def test_add_keeps_insertion_order(self, naan, samosa):
        cart = add_to_cart(add_to_cart(Cart(), samosa, 1), naan, 1)
        assert [entry.name for entry in cart.entries] == ["Samosa", "Naan"]

    def test_add_below_one_is_noop(self, naan):
        assert add_to_cart(Cart(), naan, 0) == Cart()

    def test_remove_all(self, filled_cart, naan):
        cart = remove_from_cart(filled_cart, naan.id)
        assert cart.get(naan.id) is None
        assert cart.item_count == 2

    def test_remove_clamps_at_zero(self, filled_cart, naan):
        assert remove_from_cart(filled_cart, naan.id, 10).get(naan.id) is None

    def test_remove_missing_item(self, filled_cart):
        assert remove_from_cart(filled_cart, "999", 1) == filled_cart


class TestCartReconciler:
    """Tests for applying resolved operations."""

    def test_add_to_empty_cart(self, reconciler, item_named):
        result = reconciler.apply(Cart(), [
            ResolvedOperation.add(item_named("Idli Sambhar"), 2),
            ResolvedOperation.add(item_named("Mango Lassi"), 3),
        ])
        assert [(e.name, e.quantity) for e in result.cart.entries] == [
            ("Idli Sambhar", 2), ("Mango Lassi", 3),
        ]
        assert result.message == (
            "Added 2 Idli Sambhar to your cart. Added 3 Mango Lassi to your cart."
        )

    def test_input_cart_is_not_modified(self, reconciler, filled_cart, naan):
        before = filled_cart.to_dict()
        reconciler.apply(filled_cart, [ResolvedOperation.remove(naan, None),
                                       ResolvedOperation.add(naan, 4)])
        assert filled_cart.to_dict() == before

    def test_partial_remove(self, reconciler, filled_cart, naan):
        result = reconciler.apply(filled_cart, [ResolvedOperation.remove(naan, 1)])
        assert result.cart.quantity_of(naan.id) == 2
        assert result.message == "Removed 1 Naan from your cart."

    def test_full_remove(self, reconciler, filled_cart, naan):
        result = reconciler.apply(filled_cart, [ResolvedOperation.remove(naan, None)])
        assert result.cart.get(naan.id) is None
        assert result.message == "Removed Naan from your cart."

    def test_over_remove_deletes_entry(self, reconciler, filled_cart, samosa):
        result = reconciler.apply(filled_cart, [ResolvedOperation.remove(samosa, 5)])
        assert result.cart.get(samosa.id) is None
        assert result.cart.item_count == 3

    def test_remove_item_not_in_cart(self, reconciler, item_named):
        result = reconciler.apply(Cart(), [ResolvedOperation.remove(item_named("Naan"), 1)])
        assert result.cart == Cart()
        assert result.message == "Naan is not in your cart."

    def test_reset_always_empties(self, reconciler, filled_cart):
        for cart in (Cart(), filled_cart):
            result = reconciler.apply(cart, [ResolvedOperation.command(OperationType.RESET)])
            assert result.cart.is_empty
            assert result.message == "Cart has been cleared."

    def test_unresolved_item_leaves_cart(self, reconciler, filled_cart):
        result = reconciler.apply(filled_cart, [ResolvedOperation.add(None, 1, fragment="xyzfood")])
        assert result.cart == filled_cart
        assert result.message == 'Item "xyzfood" not found in menu.'

    def test_item_outside_catalog_rejected(self, reconciler):
        stranger = CatalogItem(id="99", name="Pizza", price=300, category="Italian")
        result = reconciler.apply(Cart(), [ResolvedOperation.add(stranger, 1)])
        assert result.cart.is_empty
        assert result.message == 'Item "Pizza" not found in menu.'

    def test_add_zero_adds_nothing(self, reconciler, naan):
        result = reconciler.apply(Cart(), [ResolvedOperation.add(naan, 0)])
        assert result.cart.is_empty
        assert result.message == "Nothing added for Naan."

    def test_navigation_has_no_cart_effect(self, reconciler, filled_cart):
        result = reconciler.apply(filled_cart, [
            ResolvedOperation.command(OperationType.NAVIGATE_TO_CART),
            ResolvedOperation.command(OperationType.START_CAPTURE),
        ])
        assert result.cart == filled_cart
        assert result.messages == ()

    def test_operations_apply_in_order(self, reconciler, naan):
        result = reconciler.apply(Cart(), [
            ResolvedOperation.add(naan, 2),
            ResolvedOperation.command(OperationType.RESET),
            ResolvedOperation.add(naan, 1),
        ])
        assert result.cart.quantity_of(naan.id) == 1


class TestCartEvaluator:
    """Tests for cart metrics."""

    def test_exact_match(self, filled_cart):
        assert CartEvaluator.exact_match(filled_cart, {"12": 3, "5": 2})
        assert not CartEvaluator.exact_match(filled_cart, {"12": 3})

    def test_f1_perfect(self, filled_cart):
        assert CartEvaluator.calculate_f1(filled_cart, {"12": 3, "5": 2}) == 1.0

    def test_f1_counts_units(self, filled_cart):
        # 3 of 5 actual units expected, all 3 expected units present
        f1 = CartEvaluator.calculate_f1(filled_cart, {"12": 3})
        assert f1 == pytest.approx(2 * (0.6 * 1.0) / 1.6)

    def test_f1_empty_expected(self, filled_cart):
        assert CartEvaluator.calculate_f1(Cart(), {}) == 1.0
        assert CartEvaluator.calculate_f1(filled_cart, {}) == 0.0

    def test_item_accuracy_ignores_quantity(self, filled_cart):
        assert CartEvaluator.calculate_item_accuracy(filled_cart, {"12": 1, "3": 1}) == 0.5
