"""Cart mutation rules"""

import logging
from typing import Optional

from bson import ObjectId

from ..core.locks import KeyedLock, account_locks
from ..database.carts import CartDatabase, cart_db
from ..database.connection import to_object_id, utcnow
from ..database.products import ProductDatabase, product_db
from ..errors import (
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
    SizeUnavailableError,
)
from ..models.cart import Cart, CartSummary
from .presenters import cart_view

logger = logging.getLogger(__name__)


def discounted_price(price: float, discount: Optional[float]) -> float:
    """Unit price after a percentage discount"""
    return price * (1 - (discount or 0) / 100)


def find_line(items: list[dict], product_id: ObjectId, size: float) -> int:
    """Index of the line for (product, size), or -1"""
    for index, item in enumerate(items):
        if item["product_id"] == product_id and item["size"] == size:
            return index
    return -1


class CartService:
    """
    Per-user cart operations.

    A cart holds at most one line per (product, size); adding an existing
    pair merges quantities. Stock is checked against the live catalog on
    every add and update.
    """

    def __init__(
        self,
        products: ProductDatabase = product_db,
        carts: CartDatabase = cart_db,
        locks: KeyedLock = account_locks,
    ):
        self.products = products
        self.carts = carts
        self.locks = locks

    def _sellable_product(self, product_id: ObjectId) -> dict:
        product = self.products.get_product(product_id)
        if not product or product.get("is_archived"):
            raise NotFoundError("Product")
        return product

    def get_cart(self, user_id: ObjectId) -> Cart:
        """Get the cart, creating an empty one on first use"""
        return cart_view(self.carts.get_or_create_cart(user_id))

    def add_line(self, user_id: ObjectId, product_id: str, size: float, quantity: int = 1) -> Cart:
        """Add a line or merge into the existing (product, size) line"""
        if quantity < 1:
            raise InvalidArgumentError("Quantity must be at least 1")

        pid = to_object_id(product_id, "Product")
        product = self._sellable_product(pid)

        if size not in product.get("sizes", []):
            raise SizeUnavailableError(product["name"], size)
        if product.get("stock", 0) < quantity:
            raise InsufficientStockError(product["name"], product.get("stock", 0), quantity)

        with self.locks.hold(str(user_id)):
            cart = self.carts.get_or_create_cart(user_id)
            items = list(cart.get("items", []))
            index = find_line(items, pid, size)

            if index >= 0:
                merged = items[index]["quantity"] + quantity
                if merged > product["stock"]:
                    raise InsufficientStockError(product["name"], product["stock"], merged)
                items[index] = {**items[index], "quantity": merged}
            else:
                items.append({
                    "product_id": pid,
                    "size": size,
                    "quantity": quantity,
                    "added_at": utcnow(),
                })

            cart = self.carts.save_items(user_id, items)

        logger.debug(f"Cart {user_id}: added {quantity}x {pid} size {size}")
        return cart_view(cart)

    def update_line(self, user_id: ObjectId, product_id: str, size: float, quantity: int) -> Cart:
        """Replace the quantity of an existing line"""
        if quantity < 1:
            raise InvalidArgumentError("Quantity must be at least 1")

        pid = to_object_id(product_id, "Product")
        product = self._sellable_product(pid)
        if product.get("stock", 0) < quantity:
            raise InsufficientStockError(product["name"], product.get("stock", 0), quantity)

        with self.locks.hold(str(user_id)):
            cart = self.carts.get_cart(user_id)
            if not cart:
                raise NotFoundError("Cart")

            items = list(cart.get("items", []))
            index = find_line(items, pid, size)
            if index == -1:
                raise NotFoundError("Cart item", "Item not found in cart")

            items[index] = {**items[index], "quantity": quantity}
            cart = self.carts.save_items(user_id, items)

        return cart_view(cart)

    def remove_line(self, user_id: ObjectId, product_id: str, size: float) -> Cart:
        """Drop the line for (product, size)"""
        pid = to_object_id(product_id, "Product")

        with self.locks.hold(str(user_id)):
            cart = self.carts.get_cart(user_id)
            if not cart:
                raise NotFoundError("Cart")

            items = list(cart.get("items", []))
            index = find_line(items, pid, size)
            if index == -1:
                raise NotFoundError("Cart item", "Item not found in cart")

            del items[index]
            cart = self.carts.save_items(user_id, items)

        return cart_view(cart)

    def clear(self, user_id: ObjectId) -> Cart:
        """Empty the cart; clearing an empty cart succeeds"""
        with self.locks.hold(str(user_id)):
            self.carts.get_or_create_cart(user_id)
            cart = self.carts.clear_cart(user_id)
        return cart_view(cart, products={})

    def summary(self, user_id: ObjectId) -> CartSummary:
        """Totals computed from live product prices and discounts"""
        cart = self.carts.get_cart(user_id)
        if not cart or not cart.get("items"):
            return CartSummary()

        items = cart["items"]
        products = self.products.get_products(item["product_id"] for item in items)

        total_price = 0.0
        total_items = 0
        for item in items:
            product = products.get(item["product_id"])
            if not product:
                continue
            total_price += discounted_price(product["price"], product.get("discount")) * item["quantity"]
            total_items += item["quantity"]

        return CartSummary(
            total_items=total_items,
            total_price=round(total_price, 2),
            item_count=len(items),
        )


# Singleton instance
cart_service = CartService()
