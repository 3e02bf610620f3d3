# API Routes

from .users import router as users_router
from .products import router as products_router
from .wishlist import router as wishlist_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .admin import router as admin_router

__all__ = [
    "users_router",
    "products_router",
    "wishlist_router",
    "cart_router",
    "checkout_router",
    "admin_router",
]
