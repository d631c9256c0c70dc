from dataclasses import replace

import pytest

from cart_engine import CartReconciler
from menu_data import KIOSK_MENU, CatalogItem, Menu
from menu_matcher import MenuMatcher
from nlp_processor import TranscriptInterpreter
from session_controller import SessionController, new_session


def _item_named(name):
    for item in KIOSK_MENU.items:
        if item.name == name:
            return item
    raise KeyError(name)


@pytest.fixture
def item_named():
    """Look up a kiosk menu item by its display name."""
    return _item_named


@pytest.fixture
def menu():
    return KIOSK_MENU


@pytest.fixture
def small_menu():
    """Three-item catalog for matcher tie-break tests."""
    return Menu(
        name="Test Menu",
        items=[
            CatalogItem(id="a", name="Chicken Tikka", price=220, category="Starters"),
            CatalogItem(id="b", name="Chicken Curry", price=260, category="Main Course"),
            CatalogItem(id="c", name="Naan", price=50, category="Bread"),
        ],
        categories=["All Categories", "Starters", "Main Course", "Bread"],
    )


@pytest.fixture
def interpreter(menu):
    return TranscriptInterpreter(menu, matcher=MenuMatcher(menu))


@pytest.fixture
def reconciler(menu):
    return CartReconciler(menu)


@pytest.fixture
def controller(interpreter, reconciler):
    return SessionController(interpreter, reconciler)


@pytest.fixture
def idle_state():
    return new_session(order_id="KSK1")


@pytest.fixture
def listening_state(idle_state):
    return replace(idle_state, listening=True)
