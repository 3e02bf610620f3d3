# Store services

from .accounts import AccountService, account_service
from .assets import AssetStore, asset_store, public_id_from_url
from .cart import CartService, cart_service
from .catalog import CatalogService, catalog_service
from .checkout import CheckoutService, checkout_service, shipping_cost_for
from .engagement import EngagementService, engagement_service
from .mailer import Mailer, mailer
from .orders_admin import OrderAdminService, order_admin_service

__all__ = [
    "AccountService",
    "account_service",
    "AssetStore",
    "asset_store",
    "public_id_from_url",
    "CartService",
    "cart_service",
    "CatalogService",
    "catalog_service",
    "CheckoutService",
    "checkout_service",
    "shipping_cost_for",
    "EngagementService",
    "engagement_service",
    "Mailer",
    "mailer",
    "OrderAdminService",
    "order_admin_service",
]
