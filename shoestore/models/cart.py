"""Cart models"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from .product import ProductSummary


class CartItem(BaseModel):
    """Line in a shopping cart"""
    product_id: str
    size: float
    quantity: int = Field(gt=0)
    added_at: Optional[datetime] = None
    product: Optional[ProductSummary] = None


class Cart(BaseModel):
    """Shopping cart"""
    id: str
    user_id: str
    items: list[CartItem] = []
    updated_at: Optional[datetime] = None


class AddToCartRequest(BaseModel):
    """Request to add a line to the cart"""
    product_id: str
    size: float
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(BaseModel):
    """Request to replace a cart line's quantity"""
    product_id: str
    size: float
    quantity: int


class RemoveFromCartRequest(BaseModel):
    """Request to drop a cart line"""
    product_id: str
    size: float


class CartSummary(BaseModel):
    """Totals projected from live product prices"""
    total_items: int = 0
    total_price: float = 0.0
    item_count: int = 0
