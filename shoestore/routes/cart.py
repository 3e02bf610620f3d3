"""Cart API routes"""

from fastapi import APIRouter, Depends

from ..models.cart import (
    Cart,
    AddToCartRequest,
    UpdateCartItemRequest,
    RemoveFromCartRequest,
    CartSummary,
)
from ..models.common import ApiResponse
from ..security.auth import CurrentUser, require_user
from ..services.cart import cart_service

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=ApiResponse[Cart])
def get_cart(user: CurrentUser = Depends(require_user)):
    """Get the caller's cart, creating it on first use"""
    return ApiResponse(data=cart_service.get_cart(user.id), message="Cart fetched successfully")


@router.post("", response_model=ApiResponse[Cart])
def add_to_cart(request: AddToCartRequest, user: CurrentUser = Depends(require_user)):
    """Add a line; an existing (product, size) line has its quantity increased"""
    cart = cart_service.add_line(user.id, request.product_id, request.size, request.quantity)
    return ApiResponse(data=cart, message="Product added to cart successfully")


@router.put("", response_model=ApiResponse[Cart])
def update_cart_item(request: UpdateCartItemRequest, user: CurrentUser = Depends(require_user)):
    """Replace the quantity of a cart line"""
    cart = cart_service.update_line(user.id, request.product_id, request.size, request.quantity)
    return ApiResponse(data=cart, message="Cart updated successfully")


@router.post("/remove", response_model=ApiResponse[Cart])
def remove_from_cart(request: RemoveFromCartRequest, user: CurrentUser = Depends(require_user)):
    """Remove a cart line"""
    cart = cart_service.remove_line(user.id, request.product_id, request.size)
    return ApiResponse(data=cart, message="Item removed from cart successfully")


@router.delete("", response_model=ApiResponse[Cart])
def clear_cart(user: CurrentUser = Depends(require_user)):
    """Clear all items from cart"""
    return ApiResponse(data=cart_service.clear(user.id), message="Cart cleared successfully")


@router.get("/summary", response_model=ApiResponse[CartSummary])
def cart_summary(user: CurrentUser = Depends(require_user)):
    """Item count and price totals at current prices"""
    return ApiResponse(data=cart_service.summary(user.id), message="Cart summary fetched successfully")
