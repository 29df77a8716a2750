"""
MongoDB Collections and Document Conventions

Documents are stored schemaless; only the fields the API reads are named here.

    foods    - menu items {_id, name, price, category, ...}
    reviews  - customer reviews (read-only)
    cart     - cart entries {_id, itemId: <menu item id>, email, ...}
               (older entries have no itemId; their _id is the menu item id)
    users    - {_id, email, role?, ...}
    payment  - payment records {_id, itemId: [...], ...}
"""

import enum


class CollectionName(str, enum.Enum):
    """Collection names inside the Bistro database."""
    FOODS = "foods"
    REVIEWS = "reviews"
    CART = "cart"
    USERS = "users"
    PAYMENTS = "payment"


class UserRole(str, enum.Enum):
    """Only ADMIN carries meaning; any other role string is accepted as-is."""
    ADMIN = "admin"


# Document field names shared by routes and repositories
ID_FIELD = "_id"
EMAIL_FIELD = "email"
ROLE_FIELD = "role"
CART_ITEM_FIELD = "itemId"
PAYMENT_ITEMS_FIELD = "itemId"
