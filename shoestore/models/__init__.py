# Shoe Store Models

from .common import ApiResponse, ErrorResponse, Pagination
from .product import (
    Product,
    ProductSummary,
    ProductCategory,
    Gender,
    Season,
    ProductCreate,
    ProductUpdate,
    StockUpdateRequest,
    BulkUpdateItem,
    BulkUpdateRequest,
    BulkUpdateResult,
    BulkUpdateResponse,
    ProductPage,
)
from .cart import (
    Cart,
    CartItem,
    AddToCartRequest,
    UpdateCartItemRequest,
    RemoveFromCartRequest,
    CartSummary,
)
from .checkout import (
    Order,
    OrderItem,
    OrderPage,
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
    ShippingAddress,
    ContactInfo,
    CheckoutRequest,
    CheckoutProfileUpdate,
    OrderStatusUpdate,
    PaymentStatusUpdate,
    OrderStats,
)
from .user import (
    User,
    Role,
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    TokenPair,
    AuthResponse,
    UpdateInfoRequest,
    UpdatePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from .review import Review, ReviewRequest, ReviewPage, WishlistStatus

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "Pagination",
    "Product",
    "ProductSummary",
    "ProductCategory",
    "Gender",
    "Season",
    "ProductCreate",
    "ProductUpdate",
    "StockUpdateRequest",
    "BulkUpdateItem",
    "BulkUpdateRequest",
    "BulkUpdateResult",
    "BulkUpdateResponse",
    "ProductPage",
    "Cart",
    "CartItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "RemoveFromCartRequest",
    "CartSummary",
    "Order",
    "OrderItem",
    "OrderPage",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "ShippingAddress",
    "ContactInfo",
    "CheckoutRequest",
    "CheckoutProfileUpdate",
    "OrderStatusUpdate",
    "PaymentStatusUpdate",
    "OrderStats",
    "User",
    "Role",
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "TokenPair",
    "AuthResponse",
    "UpdateInfoRequest",
    "UpdatePasswordRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "Review",
    "ReviewRequest",
    "ReviewPage",
    "WishlistStatus",
]
