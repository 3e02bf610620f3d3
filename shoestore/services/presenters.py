"""Turn stored documents into response models"""

from typing import Iterable, Optional

from bson import ObjectId

from ..database.connection import to_str_id
from ..database.products import product_db
from ..database.users import strip_private
from ..models.cart import Cart
from ..models.checkout import Order, OrderCustomer
from ..models.product import Product, ProductSummary
from ..models.user import User

CART_PRODUCT_FIELDS = ("name", "description", "price", "discount", "brand", "images", "sizes", "stock")
ORDER_PRODUCT_FIELDS = ("name", "price", "images", "brand")
ADMIN_ORDER_PRODUCT_FIELDS = ORDER_PRODUCT_FIELDS + ("stock",)


def product_view(doc: dict) -> Product:
    return Product.model_validate(to_str_id(doc))


def user_view(doc: dict) -> User:
    return User.model_validate(to_str_id(strip_private(doc)))


def product_summary(doc: Optional[dict], fields: Iterable[str]) -> Optional[ProductSummary]:
    """Select display fields from a product document"""
    if doc is None:
        return None
    data = {"id": str(doc["_id"]), "name": doc.get("name", "")}
    for field in fields:
        if field in doc:
            data[field] = doc[field]
    return ProductSummary.model_validate(data)


def _lookup_products(items: list[dict], products: Optional[dict[ObjectId, dict]]) -> dict[ObjectId, dict]:
    if products is not None:
        return products
    return product_db.get_products(item["product_id"] for item in items)


def cart_view(cart: dict, products: Optional[dict[ObjectId, dict]] = None) -> Cart:
    """Cart with each line's product resolved"""
    items = cart.get("items", [])
    products = _lookup_products(items, products)
    data = to_str_id(cart)
    for line, raw in zip(data["items"], items):
        line["product"] = product_summary(products.get(raw["product_id"]), CART_PRODUCT_FIELDS)
    return Cart.model_validate(data)


def order_view(
    order: dict,
    products: Optional[dict[ObjectId, dict]] = None,
    customer: Optional[dict] = None,
    product_fields: Iterable[str] = ORDER_PRODUCT_FIELDS,
) -> Order:
    """Order with line products (and optionally the customer) resolved"""
    items = order.get("items", [])
    products = _lookup_products(items, products)
    data = to_str_id(order)
    for line, raw in zip(data["items"], items):
        line["product"] = product_summary(products.get(raw["product_id"]), product_fields)
    if customer is not None:
        data["customer"] = OrderCustomer.model_validate(to_str_id(strip_private(customer)))
    return Order.model_validate(data)


def order_views(orders: list[dict], customers: Optional[dict[ObjectId, dict]] = None) -> list[Order]:
    """Resolve products for a page of orders with a single catalog lookup"""
    products = product_db.get_products(
        item["product_id"] for order in orders for item in order.get("items", [])
    )
    return [
        order_view(o, products, customer=(customers or {}).get(o.get("user_id")))
        for o in orders
    ]
