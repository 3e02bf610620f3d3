"""
Checkout Workflow

Converts a user's cart into an order and reverses that on cancellation.

Checkout runs its preconditions in order and aborts on the first failure
without touching any state. Once stock is being reserved, every effect that
has happened is compensated if a later step fails: reservations are
released and a written order is removed, so order creation, stock
decrement and cart clearing either all happen or none do.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

from bson import ObjectId

from ..core.config import Settings, get_settings
from ..core.locks import KeyedLock, account_locks
from ..database.carts import CartDatabase, cart_db
from ..database.connection import to_object_id, utcnow
from ..database.orders import OrderDatabase, order_db
from ..database.products import ProductDatabase, product_db
from ..database.users import UserDatabase, user_db
from ..errors import (
    EmptyCartError,
    InsufficientStockError,
    InvalidAddressError,
    InvalidLineItemError,
    InvalidTransitionError,
    MissingAddressError,
    MissingContactError,
    NotFoundError,
    SizeUnavailableError,
)
from ..models.checkout import (
    CheckoutRequest,
    Order,
    OrderPage,
    OrderStatus,
    PaymentStatus,
    ShippingAddress,
)
from ..models.common import Pagination
from ..models.user import User
from .cart import discounted_price
from .presenters import order_view, order_views, user_view

logger = logging.getLogger(__name__)

REQUIRED_ADDRESS_FIELDS = ("street", "city", "province", "postal_code")
CANCELLABLE_STATUSES = (OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value)


def shipping_cost_for(total_amount: float, settings: Settings) -> float:
    """Flat fee unless the order total clears the free-shipping threshold"""
    if total_amount > settings.free_shipping_threshold:
        return 0.0
    return settings.flat_shipping_fee


class CheckoutService:
    """Checkout, cancellation and the customer's own order history"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        products: ProductDatabase = product_db,
        carts: CartDatabase = cart_db,
        orders: OrderDatabase = order_db,
        users: UserDatabase = user_db,
        locks: KeyedLock = account_locks,
    ):
        self._settings = settings
        self.products = products
        self.carts = carts
        self.orders = orders
        self.users = users
        self.locks = locks

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    # --- Preconditions ---

    def _resolve_phone(self, request: CheckoutRequest, user: dict) -> str:
        phone = request.phone or user.get("phone")
        if not phone:
            raise MissingContactError()
        return phone

    def _resolve_address(self, request: CheckoutRequest, user: dict) -> dict:
        if request.shipping_address is not None:
            address = request.shipping_address.model_dump()
        else:
            address = user.get("address")
        if not address:
            raise MissingAddressError()

        for field in REQUIRED_ADDRESS_FIELDS:
            if not address.get(field):
                raise InvalidAddressError(field)

        return ShippingAddress(
            **{**address, "country": address.get("country") or self.settings.default_country}
        ).model_dump()

    def _price_lines(self, items: list[dict]) -> tuple[list[dict], float, dict[ObjectId, dict]]:
        """
        Re-validate cart lines against the live catalog and snapshot prices.

        Returns:
            Tuple of (order lines, total amount, products by id)
        """
        products = self.products.get_products(item["product_id"] for item in items)
        lines = []
        total_amount = 0.0

        for item in items:
            product = products.get(item["product_id"])
            if not product or product.get("is_archived"):
                raise InvalidLineItemError(str(item["product_id"]))

            quantity = item["quantity"]
            if product.get("stock", 0) < quantity:
                raise InsufficientStockError(product["name"], product.get("stock", 0), quantity)

            if item["size"] not in product.get("sizes", []):
                raise SizeUnavailableError(product["name"], item["size"])

            price = product["price"]
            discount = product.get("discount") or 0
            total_amount += discounted_price(price, discount) * quantity

            lines.append({
                "product_id": product["_id"],
                "size": item["size"],
                "quantity": quantity,
                "price_at_purchase": price,
                "discount_at_purchase": discount,
            })

        return lines, round(total_amount, 2), products

    # --- Stock reservation ---

    def _reserve(self, lines: list[dict], products: dict[ObjectId, dict]) -> list[dict]:
        """Reserve stock line by line; on a shortfall release what was taken"""
        reserved: list[dict] = []
        for line in lines:
            if self.products.reserve_stock(line["product_id"], line["quantity"]) is None:
                self._release(reserved)
                current = self.products.get_product(line["product_id"])
                name = (current or products[line["product_id"]])["name"]
                available = current.get("stock", 0) if current else 0
                raise InsufficientStockError(name, available, line["quantity"])
            reserved.append(line)
        return reserved

    def _release(self, lines: list[dict]) -> None:
        """Return reserved quantities to stock"""
        for line in lines:
            try:
                if not self.products.release_stock(line["product_id"], line["quantity"]):
                    logger.error(f"Restock skipped: product {line['product_id']} no longer exists")
            except Exception:
                logger.exception(
                    f"Restock of {line['quantity']}x {line['product_id']} failed"
                )

    # --- Operations ---

    def checkout(self, user_id: ObjectId, request: CheckoutRequest) -> Order:
        """Turn the user's cart into a pending order"""
        with self.locks.hold(str(user_id)):
            user = self.users.get_user(user_id)
            if not user:
                raise NotFoundError("User")

            phone = self._resolve_phone(request, user)
            address = self._resolve_address(request, user)

            cart = self.carts.get_cart(user_id)
            if not cart or not cart.get("items"):
                raise EmptyCartError()

            lines, total_amount, products = self._price_lines(cart["items"])
            shipping_cost = shipping_cost_for(total_amount, self.settings)
            final_amount = round(total_amount + shipping_cost, 2)

            reserved = self._reserve(lines, products)
            order: Optional[dict] = None
            try:
                order = self.orders.create_order({
                    "user_id": user_id,
                    "items": lines,
                    "shipping_address": address,
                    "contact_info": {"phone": phone, "email": user["email"]},
                    "total_amount": total_amount,
                    "shipping_cost": shipping_cost,
                    "final_amount": final_amount,
                    "status": OrderStatus.PENDING.value,
                    "payment_status": PaymentStatus.PENDING.value,
                    "payment_method": request.payment_method.value,
                    "tracking_number": None,
                    "notes": request.notes,
                    "estimated_delivery": utcnow() + timedelta(days=self.settings.delivery_estimate_days),
                    "confirmed_at": None,
                    "shipped_at": None,
                    "delivered_at": None,
                })
                self.carts.clear_cart(user_id)
            except Exception:
                logger.exception(f"Checkout for user {user_id} failed after reserving stock; compensating")
                try:
                    if order is not None:
                        self.orders.delete_order(order["_id"])
                except Exception:
                    logger.exception(f"Could not remove order {order['order_number']} during compensation")
                finally:
                    self._release(reserved)
                raise

        logger.info(
            f"Order {order['order_number']} created: {final_amount:.2f} "
            f"({len(lines)} lines) for user {user_id}"
        )
        return order_view(order, products)

    def cancel(self, user_id: ObjectId, order_id: str) -> Order:
        """Cancel a pending or confirmed order and restock its lines"""
        oid = to_object_id(order_id, "Order")

        with self.locks.hold(str(user_id)):
            order = self.orders.get_order(oid, user_id=user_id)
            if not order:
                raise NotFoundError("Order")

            updated = self.orders.transition_status(
                oid,
                CANCELLABLE_STATUSES,
                {"status": OrderStatus.CANCELLED.value},
                user_id=user_id,
            )
            if updated is None:
                current = self.orders.get_order(oid, user_id=user_id) or order
                raise InvalidTransitionError(current["status"], OrderStatus.CANCELLED.value)

            self._release(updated["items"])

        logger.info(f"Order {updated['order_number']} cancelled by user {user_id}; stock restored")
        return order_view(updated)

    def list_orders(
        self,
        user_id: ObjectId,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        """The user's orders, newest first"""
        filters: dict[str, Any] = {"user_id": user_id}
        if status is not None:
            filters["status"] = status.value
        orders, total = self.orders.list_orders(filters, page=page, limit=limit)
        return OrderPage(orders=order_views(orders), pagination=Pagination.build(total, page, limit))

    def get_order(self, user_id: ObjectId, order_id: str) -> Order:
        order = self.orders.get_order(to_object_id(order_id, "Order"), user_id=user_id)
        if not order:
            raise NotFoundError("Order")
        return order_view(order)

    def update_checkout_profile(
        self,
        user_id: ObjectId,
        phone: Optional[str] = None,
        address: Optional[ShippingAddress] = None,
    ) -> User:
        """Store phone and address defaults used by checkout"""
        fields: dict[str, Any] = {}
        if phone:
            fields["phone"] = phone
        if address is not None:
            fields["address"] = address.model_dump()
        user = self.users.update_user(user_id, fields)
        if not user:
            raise NotFoundError("User")
        return user_view(user)


# Singleton instance
checkout_service = CheckoutService()
