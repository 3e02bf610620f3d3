"""Wishlist API routes"""

from fastapi import APIRouter, Depends

from ..models.common import ApiResponse
from ..models.product import Product
from ..models.review import WishlistStatus
from ..security.auth import CurrentUser, require_user
from ..services.engagement import engagement_service

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


@router.get("", response_model=ApiResponse[list[Product]])
def get_wishlist(user: CurrentUser = Depends(require_user)):
    return ApiResponse(data=engagement_service.list_wishlist(user.id), message="Wishlist fetched successfully")


@router.post("/{product_id}", response_model=ApiResponse[WishlistStatus])
def add_to_wishlist(product_id: str, user: CurrentUser = Depends(require_user)):
    """Add a product to the wishlist; repeating the call is harmless"""
    status = engagement_service.add_to_wishlist(user.id, product_id)
    return ApiResponse(data=status, message="Product added to wishlist")


@router.delete("/{product_id}", response_model=ApiResponse[WishlistStatus])
def remove_from_wishlist(product_id: str, user: CurrentUser = Depends(require_user)):
    status = engagement_service.remove_from_wishlist(user.id, product_id)
    return ApiResponse(data=status, message="Product removed from wishlist")
