"""Public catalog and review API routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.common import ApiResponse
from ..models.product import Product, ProductPage
from ..models.review import Review, ReviewPage, ReviewRequest
from ..security.auth import CurrentUser, require_user
from ..services.catalog import catalog_service
from ..services.engagement import engagement_service

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=ApiResponse[ProductPage])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """List products with pagination and sorting"""
    products = catalog_service.list_products(page=page, limit=limit, sort=sort, order=order)
    return ApiResponse(data=products, message="Products fetched successfully")


@router.get("/featured", response_model=ApiResponse[list[Product]])
def featured_products():
    """Newest products for the storefront"""
    return ApiResponse(data=catalog_service.featured(), message="Featured products fetched successfully")


@router.get("/sale", response_model=ApiResponse[ProductPage])
def sale_products(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    """Products with a discount"""
    return ApiResponse(data=catalog_service.on_sale(page, limit), message="Sale products fetched successfully")


@router.get("/search", response_model=ApiResponse[ProductPage])
def search_products(
    keyword: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """Case-insensitive search over name, description and brand"""
    products = catalog_service.search(keyword, page, limit)
    return ApiResponse(data=products, message="Search results fetched successfully")


@router.get("/filter", response_model=ApiResponse[ProductPage])
def filter_products(
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sizes: Optional[str] = Query(None, description="Comma-separated sizes"),
    brands: Optional[str] = Query(None, description="Comma-separated brands"),
    genders: Optional[str] = Query(None),
    categories: Optional[str] = Query(None),
    seasons: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """Filter by price range and attribute lists"""
    products = catalog_service.filter_products(
        min_price=min_price,
        max_price=max_price,
        sizes=sizes,
        brands=brands,
        genders=genders,
        categories=categories,
        seasons=seasons,
        page=page,
        limit=limit,
    )
    return ApiResponse(data=products, message="Filtered products fetched successfully")


@router.get("/category/{category}", response_model=ApiResponse[ProductPage])
def products_by_category(category: str, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    products = catalog_service.by_category(category, page, limit)
    return ApiResponse(data=products, message="Products fetched successfully")


@router.get("/brand/{brand}", response_model=ApiResponse[ProductPage])
def products_by_brand(brand: str, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    products = catalog_service.by_brand(brand, page, limit)
    return ApiResponse(data=products, message="Products fetched successfully")


@router.get("/{product_id}", response_model=ApiResponse[Product])
def get_product(product_id: str):
    """Get product details"""
    return ApiResponse(data=catalog_service.get_product(product_id), message="Product fetched successfully")


@router.get("/{product_id}/similar", response_model=ApiResponse[list[Product]])
def similar_products(product_id: str):
    """Products sharing the brand or category"""
    return ApiResponse(data=catalog_service.similar(product_id), message="Similar products fetched successfully")


# --- Reviews ---


@router.get("/{product_id}/reviews", response_model=ApiResponse[ReviewPage])
def list_reviews(product_id: str, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    reviews = engagement_service.list_reviews(product_id, page, limit)
    return ApiResponse(data=reviews, message="Reviews fetched successfully")


@router.post("/{product_id}/reviews", response_model=ApiResponse[Review], status_code=201)
def rate_product(
    product_id: str,
    request: ReviewRequest,
    user: CurrentUser = Depends(require_user),
):
    """Rate a product; one review per account"""
    review = engagement_service.rate_product(user.id, product_id, request.rating, request.review)
    return ApiResponse(status=201, data=review, message="Review added successfully")


@router.delete("/{product_id}/reviews", response_model=ApiResponse[None])
def delete_review(product_id: str, user: CurrentUser = Depends(require_user)):
    """Delete the caller's review of a product"""
    engagement_service.delete_review(user.id, product_id)
    return ApiResponse(message="Review deleted successfully")
