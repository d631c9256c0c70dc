"""
Menu data structures for the voice kiosk ordering system.
Contains the kiosk catalog, its category labels, and lookup helpers.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class CatalogItem:
    """Represents a single dish on the kiosk menu."""
    id: str
    name: str
    price: float
    category: str
    image: str = ""
    description: str = ""

    def __post_init__(self):
        if self.price < 0:
            raise ValueError(f"Price for {self.name!r} must be non-negative")


@dataclass(frozen=True)
class Menu:
    """Complete catalog loaded once per session."""
    name: str
    items: List[CatalogItem]
    categories: List[str]


KIOSK_MENU = Menu(
    name="Kiosk Menu",
    items=[
        CatalogItem(
            id="1",
            name="Paneer Tikka",
            price=180,
            category="Starters",
            image="🧀",
            description="Grilled cottage cheese with spices",
        ),
        CatalogItem(
            id="2",
            name="Masala Dosa",
            price=120,
            category="South Indian",
            image="🫓",
            description="Crispy crepe with spiced potato filling",
        ),
        CatalogItem(
            id="3",
            name="Butter Chicken",
            price=280,
            category="Main Course",
            image="🍛",
            description="Creamy tomato-based chicken curry",
        ),
        CatalogItem(
            id="4",
            name="Veg Biryani",
            price=200,
            category="Rice",
            image="🍚",
            description="Fragrant basmati rice with vegetables",
        ),
        CatalogItem(
            id="5",
            name="Samosa",
            price=40,
            category="Snacks",
            image="🥟",
            description="Crispy pastry with spiced filling",
        ),
        CatalogItem(
            id="6",
            name="Chole Bhature",
            price=150,
            category="North Indian",
            image="🫘",
            description="Spiced chickpeas with fried bread",
        ),
        CatalogItem(
            id="7",
            name="Idli Sambhar",
            price=80,
            category="South Indian",
            image="⚪",
            description="Steamed rice cakes with lentil soup",
        ),
        CatalogItem(
            id="8",
            name="Chicken Tikka",
            price=220,
            category="Starters",
            image="🍗",
            description="Grilled marinated chicken pieces",
        ),
        CatalogItem(
            id="9",
            name="Dal Tadka",
            price=140,
            category="Main Course",
            image="🫛",
            description="Tempered yellow lentils",
        ),
        CatalogItem(
            id="10",
            name="Gulab Jamun",
            price=60,
            category="Desserts",
            image="🍡",
            description="Sweet milk dumplings in syrup",
        ),
        CatalogItem(
            id="11",
            name="Mango Lassi",
            price=80,
            category="Beverages",
            image="🥭",
            description="Sweet mango yogurt drink",
        ),
        CatalogItem(
            id="12",
            name="Naan",
            price=50,
            category="Bread",
            image="🫓",
            description="Traditional Indian flatbread",
        ),
    ],
    categories=[
        "All Categories",
        "Starters",
        "Main Course",
        "South Indian",
        "North Indian",
        "Rice",
        "Snacks",
        "Bread",
        "Desserts",
        "Beverages",
    ],
)


def get_menu(menu_name: str = "kiosk") -> Menu:
    """Get a menu by name."""
    menus = {
        "kiosk": KIOSK_MENU,
    }
    return menus.get(menu_name.lower(), KIOSK_MENU)


def find_item_by_id(menu: Menu, item_id: str) -> Optional[CatalogItem]:
    """Find a menu item by id."""
    for item in menu.items:
        if item.id == item_id:
            return item
    return None


def get_items_by_category(menu: Menu, category: str) -> List[CatalogItem]:
    """Filter menu items by category; "All Categories" returns everything."""
    if not category or category.lower() in ("all", "all categories"):
        return list(menu.items)
    return [item for item in menu.items if item.category.lower() == category.lower()]


def item_to_dict(item: CatalogItem) -> dict:
    """Convert a menu item to a dictionary for JSON serialization."""
    return {
        "id": item.id,
        "name": item.name,
        "price": item.price,
        "category": item.category,
        "image": item.image,
        "description": item.description,
    }
