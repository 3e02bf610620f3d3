# Database modules

from .connection import (
    init_database,
    get_database,
    close_database,
    ensure_indexes,
    to_object_id,
    to_str_id,
)
from .products import product_db, ProductDatabase
from .carts import cart_db, CartDatabase
from .orders import order_db, OrderDatabase
from .users import user_db, UserDatabase
from .reviews import review_db, ReviewDatabase

__all__ = [
    "init_database",
    "get_database",
    "close_database",
    "ensure_indexes",
    "to_object_id",
    "to_str_id",
    "product_db",
    "ProductDatabase",
    "cart_db",
    "CartDatabase",
    "order_db",
    "OrderDatabase",
    "user_db",
    "UserDatabase",
    "review_db",
    "ReviewDatabase",
]
