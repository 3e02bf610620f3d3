"""Checkout and order models"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .common import Pagination
from .product import ProductSummary


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


class ShippingAddress(BaseModel):
    """Shipping address for an order; required fields are checked at checkout"""
    street: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class ContactInfo(BaseModel):
    phone: str
    email: str


class CheckoutRequest(BaseModel):
    """Request to turn the caller's cart into an order"""
    shipping_address: Optional[ShippingAddress] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY


class CheckoutProfileUpdate(BaseModel):
    """Checkout defaults stored on the account"""
    phone: Optional[str] = None
    address: Optional[ShippingAddress] = None


class OrderItem(BaseModel):
    """Priced snapshot of a purchased line"""
    product_id: str
    size: float
    quantity: int
    price_at_purchase: float
    discount_at_purchase: float = 0
    product: Optional[ProductSummary] = None


class OrderCustomer(BaseModel):
    """Account fields resolved into admin order views"""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[ShippingAddress] = None


class Order(BaseModel):
    """Placed order"""
    id: str
    order_number: str
    user_id: str
    items: list[OrderItem]
    shipping_address: ShippingAddress
    contact_info: ContactInfo
    total_amount: float
    shipping_cost: float
    final_amount: float
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    customer: Optional[OrderCustomer] = None


class OrderPage(BaseModel):
    """A page of orders"""
    orders: list[Order]
    pagination: Pagination


class OrderStatusUpdate(BaseModel):
    """Admin request to move an order to a new status"""
    status: OrderStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class PaymentStatusUpdate(BaseModel):
    """Admin request to record a payment outcome"""
    payment_status: PaymentStatus


class StatsBucket(BaseModel):
    """Order count and revenue for one status value"""
    key: Optional[str] = None
    count: int
    total_amount: float


class OrderTotals(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0


class OrderStats(BaseModel):
    """Admin dashboard figures"""
    status_stats: list[StatsBucket]
    payment_stats: list[StatsBucket]
    total_stats: OrderTotals
    recent_orders_count: int
