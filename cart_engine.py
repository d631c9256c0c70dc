"""
Cart reconciliation engine for the voice kiosk ordering system.
Applies resolved operations to an immutable cart snapshot and reports a
status message for each one.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from menu_data import CatalogItem, Menu
import vocabulary


logger = logging.getLogger(__name__)


class OperationType:
    """Operation types extracted from user utterances"""
    ADD = "add"
    REMOVE = "remove"
    RESET = vocabulary.RESET
    NAVIGATE_TO_CART = vocabulary.NAVIGATE_TO_CART
    NAVIGATE_TO_MENU = vocabulary.NAVIGATE_TO_MENU
    START_CAPTURE = vocabulary.START_CAPTURE
    STOP_CAPTURE = vocabulary.STOP_CAPTURE
    UNRECOGNIZED = "unrecognized"

    ITEM_OPERATIONS = (ADD, REMOVE)


@dataclass(frozen=True)
class ResolvedOperation:
    """
    An operation whose item fragment has been resolved against the catalog.
    For add/remove, item is None when resolution failed and fragment holds
    the text that was heard. A remove quantity of None removes the entry.
    """
    type: str
    item: Optional[CatalogItem] = None
    fragment: str = ""
    quantity: Optional[int] = None
    text: str = ""

    @property
    def resolved(self) -> bool:
        return self.item is not None

    @classmethod
    def add(cls, item: Optional[CatalogItem], quantity: int, fragment: str = "") -> "ResolvedOperation":
        return cls(type=OperationType.ADD, item=item, quantity=quantity,
                   fragment=fragment or (item.name if item else ""))

    @classmethod
    def remove(cls, item: Optional[CatalogItem], quantity: Optional[int] = None,
               fragment: str = "") -> "ResolvedOperation":
        return cls(type=OperationType.REMOVE, item=item, quantity=quantity,
                   fragment=fragment or (item.name if item else ""))

    @classmethod
    def command(cls, operation_type: str) -> "ResolvedOperation":
        return cls(type=operation_type)


@dataclass(frozen=True)
class CartEntry:
    """One line in the cart; quantity is always at least 1."""
    item_id: str
    name: str
    price: float
    quantity: int

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> Dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class Cart:
    """Immutable cart snapshot, at most one entry per item id."""
    entries: Tuple[CartEntry, ...] = ()

    @property
    def total(self) -> float:
        return sum(entry.subtotal for entry in self.entries)

    @property
    def item_count(self) -> int:
        return sum(entry.quantity for entry in self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def get(self, item_id: str) -> Optional[CartEntry]:
        for entry in self.entries:
            if entry.item_id == item_id:
                return entry
        return None

    def quantity_of(self, item_id: str) -> int:
        entry = self.get(item_id)
        return entry.quantity if entry else 0

    def to_dict(self) -> Dict:
        """Convert cart to dictionary for JSON serialization."""
        return {
            "items": [entry.to_dict() for entry in self.entries],
            "item_count": self.item_count,
            "total": round(self.total, 2),
        }


@dataclass(frozen=True)
class ReconcileResult:
    """New cart snapshot plus one status fragment per operation."""
    cart: Cart
    messages: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return " ".join(self.messages)


def add_to_cart(cart: Cart, item: CatalogItem, quantity: int) -> Cart:
    """Return a cart with quantity more of item, merging into an existing entry."""
    if quantity < 1:
        return cart
    entries = list(cart.entries)
    for index, entry in enumerate(entries):
        if entry.item_id == item.id:
            entries[index] = CartEntry(entry.item_id, entry.name, entry.price, entry.quantity + quantity)
            return Cart(tuple(entries))
    entries.append(CartEntry(item.id, item.name, item.price, quantity))
    return Cart(tuple(entries))


def remove_from_cart(cart: Cart, item_id: str, quantity: Optional[int] = None) -> Cart:
    """
    Return a cart with the item reduced by quantity, or removed entirely when
    quantity is None. Results at or below zero delete the entry.
    """
    entries = []
    for entry in cart.entries:
        if entry.item_id != item_id:
            entries.append(entry)
            continue
        if quantity is None:
            continue
        remaining = max(0, entry.quantity - max(0, quantity))
        if remaining > 0:
            entries.append(CartEntry(entry.item_id, entry.name, entry.price, remaining))
    return Cart(tuple(entries))


class CartReconciler:
    """
    Applies resolved operations to a cart snapshot.
    The input cart is never modified; every call returns a new snapshot.
    """

    def __init__(self, menu: Optional[Menu] = None):
        self.menu = menu
        self._catalog_ids = {item.id for item in menu.items} if menu else None

    def _in_catalog(self, item: CatalogItem) -> bool:
        return self._catalog_ids is None or item.id in self._catalog_ids

    def apply(self, cart: Cart, operations: Iterable[ResolvedOperation]) -> ReconcileResult:
        """Apply operations in order and collect their status messages."""
        messages: List[str] = []
        for operation in operations:
            cart, message = self.apply_one(cart, operation)
            if message:
                messages.append(message)
        return ReconcileResult(cart=cart, messages=tuple(messages))

    def apply_one(self, cart: Cart, operation: ResolvedOperation) -> Tuple[Cart, str]:
        if operation.type == OperationType.RESET:
            logger.info("🗑️ Cart cleared")
            return Cart(), "Cart has been cleared."

        if operation.type not in OperationType.ITEM_OPERATIONS:
            return cart, ""

        item = operation.item
        if item is None or not self._in_catalog(item):
            logger.warning(f"⚠️ Item not found in menu: '{operation.fragment}'")
            return cart, f'Item "{operation.fragment}" not found in menu.'

        if operation.type == OperationType.ADD:
            return self._add(cart, item, operation.quantity)
        return self._remove(cart, item, operation.quantity)

    def _add(self, cart: Cart, item: CatalogItem, quantity: Optional[int]) -> Tuple[Cart, str]:
        quantity = 1 if quantity is None else quantity
        if quantity < 1:
            logger.info(f"Ignoring add of {quantity}x {item.name}")
            return cart, f"Nothing added for {item.name}."
        new_cart = add_to_cart(cart, item, quantity)
        logger.info(f"➕ Added {quantity}x {item.name} (now {new_cart.quantity_of(item.id)})")
        return new_cart, f"Added {quantity} {item.name} to your cart."

    def _remove(self, cart: Cart, item: CatalogItem, quantity: Optional[int]) -> Tuple[Cart, str]:
        existing = cart.quantity_of(item.id)
        if existing == 0:
            logger.info(f"{item.name} not in cart, nothing to remove")
            return cart, f"{item.name} is not in your cart."

        new_cart = remove_from_cart(cart, item.id, quantity)
        remaining = new_cart.quantity_of(item.id)
        if remaining == 0:
            logger.info(f"➖ Removed all {existing}x {item.name}")
            return new_cart, f"Removed {item.name} from your cart."
        logger.info(f"➖ Removed {quantity}x {item.name} (now {remaining} remaining)")
        return new_cart, f"Removed {quantity} {item.name} from your cart."


class CartEvaluator:
    """
    Evaluates cart correctness against expected results.
    Expected carts are given as item id -> quantity.
    """

    @staticmethod
    def _as_counts(cart: Cart) -> Dict[str, int]:
        return {entry.item_id: entry.quantity for entry in cart.entries}

    @staticmethod
    def exact_match(actual: Cart, expected: Dict[str, int]) -> bool:
        """Check if the cart holds exactly the expected quantities."""
        return CartEvaluator._as_counts(actual) == dict(expected)

    @staticmethod
    def calculate_f1(actual: Cart, expected: Dict[str, int]) -> float:
        """
        Calculate F1 score over individual units.
        Two units of the same item count as two entities.
        """
        actual_counts = CartEvaluator._as_counts(actual)
        if not expected:
            return 1.0 if not actual_counts else 0.0

        true_positives = sum(min(quantity, actual_counts.get(item_id, 0))
                             for item_id, quantity in expected.items())
        actual_total = sum(actual_counts.values())
        expected_total = sum(expected.values())

        precision = true_positives / actual_total if actual_total > 0 else 0
        recall = true_positives / expected_total if expected_total > 0 else 0

        f1 = 2 * (precision * recall) / (precision + recall) if (precision + recall) > 0 else 0

        return f1

    @staticmethod
    def calculate_item_accuracy(actual: Cart, expected: Dict[str, int]) -> float:
        """Fraction of expected item ids present in the cart, ignoring quantity."""
        if not expected:
            return 1.0 if actual.is_empty else 0.0
        actual_ids = {entry.item_id for entry in actual.entries}
        correct = sum(1 for item_id in expected if item_id in actual_ids)
        return correct / len(expected)
