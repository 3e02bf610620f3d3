"""Admin order management"""

import logging
import re
from datetime import timedelta
from typing import Any, Optional

from ..core.config import Settings, get_settings
from ..database.connection import to_object_id, utcnow
from ..database.orders import OrderDatabase, order_db
from ..database.products import ProductDatabase, product_db
from ..database.users import UserDatabase, user_db
from ..errors import InvalidTransitionError, NotFoundError
from ..models.checkout import (
    Order,
    OrderPage,
    OrderStats,
    OrderStatus,
    OrderTotals,
    PaymentStatus,
    StatsBucket,
)
from ..models.common import Pagination
from .presenters import ADMIN_ORDER_PRODUCT_FIELDS, order_view, order_views

logger = logging.getLogger(__name__)

# Allowed moves when strict transitions are enabled
ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}

STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
}

SORTABLE_FIELDS = {"created_at", "updated_at", "final_amount", "total_amount", "status", "order_number"}


class OrderAdminService:
    """Read, filter and move orders through their lifecycle"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        orders: OrderDatabase = order_db,
        products: ProductDatabase = product_db,
        users: UserDatabase = user_db,
    ):
        self._settings = settings
        self.orders = orders
        self.products = products
        self.users = users

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _load(self, order_id: str) -> dict:
        order = self.orders.get_order(to_object_id(order_id, "Order"))
        if not order:
            raise NotFoundError("Order")
        return order

    def _admin_view(self, order: dict) -> Order:
        products = self.products.get_products(item["product_id"] for item in order["items"])
        return order_view(
            order,
            products,
            customer=self.users.get_user(order["user_id"]),
            product_fields=ADMIN_ORDER_PRODUCT_FIELDS,
        )

    def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        filters: dict[str, Any] = {}
        if status is not None:
            filters["status"] = status.value
        if payment_status is not None:
            filters["payment_status"] = payment_status.value
        if search:
            filters["$or"] = [
                {"order_number": {"$regex": re.escape(search), "$options": "i"}},
                {"contact_info.email": {"$regex": re.escape(search), "$options": "i"}},
            ]

        orders, total = self.orders.list_orders(
            filters,
            sort=sort_by if sort_by in SORTABLE_FIELDS else "created_at",
            descending=sort_order != "asc",
            page=page,
            limit=limit,
        )
        customers = self.users.get_users([o["user_id"] for o in orders])
        return OrderPage(
            orders=order_views(orders, customers),
            pagination=Pagination.build(total, page, limit),
        )

    def get_order(self, order_id: str) -> Order:
        return self._admin_view(self._load(order_id))

    def stats(self) -> OrderStats:
        def buckets(field: str) -> list[StatsBucket]:
            return [
                StatsBucket(key=row["_id"], count=row["count"], total_amount=round(row["total_amount"] or 0, 2))
                for row in self.orders.group_totals(field)
            ]

        overall = self.orders.group_totals(None)
        totals = OrderTotals()
        if overall:
            row = overall[0]
            totals = OrderTotals(
                total_orders=row["count"],
                total_revenue=round(row["total_amount"] or 0, 2),
                average_order_value=round(row["average_amount"] or 0, 2),
            )

        since = utcnow() - timedelta(days=self.settings.stats_recent_window_days)
        return OrderStats(
            status_stats=buckets("status"),
            payment_stats=buckets("payment_status"),
            total_stats=totals,
            recent_orders_count=self.orders.count_since(since),
        )

    def _check_transition(self, current: OrderStatus, target: OrderStatus) -> None:
        if current == OrderStatus.CANCELLED and target != OrderStatus.CANCELLED:
            # Stock for a cancelled order has already been returned
            raise InvalidTransitionError(current.value, target.value)
        if not self.settings.strict_status_transitions or current == target:
            return
        if target not in ORDER_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, target.value)

    def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """
        Move an order to ``status``.

        Entering confirmed, shipped or delivered stamps the matching
        timestamp. Cancelling restocks the order's lines exactly once.
        """
        order = self._load(order_id)
        current = OrderStatus(order["status"])
        self._check_transition(current, status)

        fields: dict[str, Any] = {"status": status.value}
        if tracking_number:
            fields["tracking_number"] = tracking_number
        if notes:
            fields["notes"] = notes
        if status in STATUS_TIMESTAMPS:
            fields[STATUS_TIMESTAMPS[status]] = utcnow()

        # Guarded by the status read above; a concurrent cancel wins
        updated = self.orders.transition_status(order["_id"], [current.value], fields)
        if updated is None:
            latest = self.orders.get_order(order["_id"])
            if latest is None:
                raise NotFoundError("Order")
            raise InvalidTransitionError(latest["status"], status.value)

        if status == OrderStatus.CANCELLED and current != OrderStatus.CANCELLED:
            for line in updated["items"]:
                if not self.products.release_stock(line["product_id"], line["quantity"]):
                    logger.error(f"Restock skipped: product {line['product_id']} no longer exists")
            logger.info(f"Order {updated['order_number']} cancelled by admin; stock restored")
        else:
            logger.info(f"Order {updated['order_number']}: {current.value} -> {status.value}")

        return self._admin_view(updated)

    def update_payment_status(self, order_id: str, payment_status: PaymentStatus) -> Order:
        """Record a payment outcome; independent of the order status"""
        updated = self.orders.update_order(
            to_object_id(order_id, "Order"),
            {"payment_status": payment_status.value},
        )
        if updated is None:
            raise NotFoundError("Order")
        logger.info(f"Order {updated['order_number']}: payment {payment_status.value}")
        return self._admin_view(updated)

    def delete_order(self, order_id: str) -> None:
        """Delete an order; only cancelled orders may be removed"""
        order = self._load(order_id)
        if order["status"] != OrderStatus.CANCELLED.value:
            raise InvalidTransitionError(
                order["status"], message="Only cancelled orders can be deleted"
            )
        self.orders.delete_order(order["_id"])
        logger.info(f"Order {order['order_number']} deleted")


# Singleton instance
order_admin_service = OrderAdminService()
