"""Checkout and order history API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.checkout import (
    CheckoutRequest,
    CheckoutProfileUpdate,
    Order,
    OrderPage,
    OrderStatus,
)
from ..models.common import ApiResponse
from ..models.user import User
from ..security.auth import CurrentUser, require_user
from ..services.checkout import checkout_service

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=ApiResponse[Order], status_code=201)
def create_order(
    request: Optional[CheckoutRequest] = None,
    user: CurrentUser = Depends(require_user),
):
    """
    Check out the caller's cart.

    Phone and shipping address fall back to the profile when omitted.
    Stock is reserved, the order is written and the cart is cleared as
    one unit; on any failure none of it remains.
    """
    order = checkout_service.checkout(user.id, request or CheckoutRequest())
    return ApiResponse(status=201, data=order, message="Order created successfully")


@router.get("", response_model=ApiResponse[OrderPage])
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(require_user),
):
    """The caller's orders, newest first"""
    orders = checkout_service.list_orders(user.id, status=status, page=page, limit=limit)
    return ApiResponse(data=orders, message="Orders fetched successfully")


@router.put("/profile", response_model=ApiResponse[User])
def update_checkout_profile(
    request: CheckoutProfileUpdate,
    user: CurrentUser = Depends(require_user),
):
    """Save phone and address used as checkout defaults"""
    updated = checkout_service.update_checkout_profile(user.id, request.phone, request.address)
    return ApiResponse(data=updated, message="Profile updated successfully")


@router.get("/{order_id}", response_model=ApiResponse[Order])
def get_order(order_id: str, user: CurrentUser = Depends(require_user)):
    order = checkout_service.get_order(user.id, order_id)
    return ApiResponse(data=order, message="Order fetched successfully")


@router.post("/{order_id}/cancel", response_model=ApiResponse[Order])
def cancel_order(order_id: str, user: CurrentUser = Depends(require_user)):
    """Cancel a pending or confirmed order; its stock is returned"""
    order = checkout_service.cancel(user.id, order_id)
    return ApiResponse(data=order, message="Order cancelled successfully")
