"""
Domain Enums

Resource kinds, the order status workflow and notification severities.

Author: Khalil Bannouri
Version: 1.0.0
"""

import enum


class ResourceKind(str, enum.Enum):
    """Collections kept by the resource store."""
    CATEGORY = "category"
    MENU_ITEM = "menuItem"
    INGREDIENT = "ingredient"
    ORDER = "order"

    @property
    def path(self) -> str:
        return _PATHS[self]

    @property
    def label(self) -> str:
        """Singular display name, e.g. "Menu item"."""
        return _LABELS[self][0]

    @property
    def plural(self) -> str:
        return _LABELS[self][1]

    @property
    def is_editable(self) -> bool:
        """Catalog kinds can be drafted, saved and deleted; orders cannot."""
        return self is not ResourceKind.ORDER


_PATHS = {
    ResourceKind.CATEGORY: "/categories",
    ResourceKind.MENU_ITEM: "/menu-items",
    ResourceKind.INGREDIENT: "/ingredients",
    ResourceKind.ORDER: "/orders",
}

_LABELS = {
    ResourceKind.CATEGORY: ("Category", "categories"),
    ResourceKind.MENU_ITEM: ("Menu item", "menu items"),
    ResourceKind.INGREDIENT: ("Ingredient", "ingredients"),
    ResourceKind.ORDER: ("Order", "orders"),
}


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Severity(str, enum.Enum):
    """Notification severity."""
    SUCCESS = "success"
    ERROR = "error"
