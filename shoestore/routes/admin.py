"""Admin API routes: accounts, catalog management and order management"""

import json
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ..errors import InvalidArgumentError
from ..models.checkout import (
    Order,
    OrderPage,
    OrderStats,
    OrderStatus,
    OrderStatusUpdate,
    PaymentStatus,
    PaymentStatusUpdate,
)
from ..models.common import ApiResponse
from ..models.product import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    Gender,
    Product,
    ProductCategory,
    ProductCreate,
    ProductPage,
    ProductUpdate,
    Season,
    StockUpdateRequest,
)
from ..models.user import User
from ..security.auth import CurrentUser, require_admin
from ..services.accounts import account_service
from ..services.catalog import catalog_service, split_csv
from ..services.orders_admin import order_admin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@contextmanager
def staged_uploads(files: list[UploadFile]) -> Iterator[list[str]]:
    """Write uploaded images to temporary files for the asset store"""
    paths: list[str] = []
    try:
        for upload in files:
            if not upload.filename:
                continue
            suffix = os.path.splitext(upload.filename)[1]
            with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
                shutil.copyfileobj(upload.file, tmp)
                paths.append(tmp.name)
        yield paths
    finally:
        for path in paths:
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Could not remove staged upload {path}: {e}")


def parse_list(value: Optional[str], name: str) -> Optional[list]:
    """Parse a form field holding a JSON array or comma-separated values"""
    if value is None:
        return None
    value = value.strip()
    if value.startswith("["):
        try:
            parsed = json.loads(value)
        except ValueError:
            raise InvalidArgumentError(f"{name} must be a JSON array")
        if not isinstance(parsed, list):
            raise InvalidArgumentError(f"{name} must be a JSON array")
        return parsed
    return split_csv(value)


def parse_sizes(value: Optional[str]) -> Optional[list[float]]:
    sizes = parse_list(value, "sizes")
    if sizes is None:
        return None
    try:
        return [float(s) for s in sizes]
    except (TypeError, ValueError):
        raise InvalidArgumentError("sizes must be numbers")


def parse_indices(value: Optional[str]) -> Optional[list[int]]:
    indices = parse_list(value, "keep_images")
    if indices is None:
        return None
    try:
        return [int(i) for i in indices]
    except (TypeError, ValueError):
        raise InvalidArgumentError("keep_images must be image indices")


# --- Accounts ---


@router.get("/users", response_model=ApiResponse[list[User]])
def list_users():
    return ApiResponse(data=account_service.list_users(), message="Users fetched successfully")


# --- Products ---


@router.post("/products", response_model=ApiResponse[Product], status_code=201)
def create_product(
    name: str = Form(...),
    price: float = Form(...),
    gender: Gender = Form(...),
    category: ProductCategory = Form(...),
    description: Optional[str] = Form(None),
    discount: float = Form(0),
    brand: Optional[str] = Form(None),
    sizes: Optional[str] = Form(None, description="JSON array or comma-separated sizes"),
    stock: int = Form(0),
    season: Season = Form(Season.ALL),
    images: list[UploadFile] = File(default=[]),
):
    """Create a product; up to five images are uploaded to the asset host"""
    data = ProductCreate(
        name=name,
        description=description,
        price=price,
        discount=discount,
        brand=brand,
        sizes=parse_sizes(sizes) or [],
        stock=stock,
        gender=gender,
        category=category,
        season=season,
    )
    with staged_uploads(images) as paths:
        product = catalog_service.create_product(data, paths)
    return ApiResponse(status=201, data=product, message="Product created successfully")


@router.get("/products", response_model=ApiResponse[ProductPage])
def list_all_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """List products including archived ones"""
    products = catalog_service.list_products(
        page=page, limit=limit, sort=sort, order=order, include_archived=True
    )
    return ApiResponse(data=products, message="Products fetched successfully")


@router.patch("/products/bulk-update", response_model=ApiResponse[BulkUpdateResponse])
def bulk_update_products(request: BulkUpdateRequest):
    """Apply each update independently; the response reports every item"""
    results = catalog_service.bulk_update_products(request.updates)
    return ApiResponse(data=BulkUpdateResponse(results=results), message="Bulk update completed")


@router.get("/products/{product_id}", response_model=ApiResponse[Product])
def get_product(product_id: str):
    product = catalog_service.get_product(product_id, include_archived=True)
    return ApiResponse(data=product, message="Product fetched successfully")


@router.put("/products/{product_id}", response_model=ApiResponse[Product])
def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    discount: Optional[float] = Form(None),
    brand: Optional[str] = Form(None),
    sizes: Optional[str] = Form(None),
    stock: Optional[int] = Form(None),
    gender: Optional[Gender] = Form(None),
    category: Optional[ProductCategory] = Form(None),
    season: Optional[Season] = Form(None),
    keep_images: Optional[str] = Form(None, description="JSON array of image indices to keep"),
    images: list[UploadFile] = File(default=[]),
):
    """
    Partially update a product.

    ``keep_images`` lists the indices of existing images that survive; the
    rest are removed from the asset host. New images are appended.
    """
    data = ProductUpdate(
        name=name,
        description=description,
        price=price,
        discount=discount,
        brand=brand,
        sizes=parse_sizes(sizes),
        stock=stock,
        gender=gender,
        category=category,
        season=season,
    )
    with staged_uploads(images) as paths:
        product = catalog_service.update_product(product_id, data, parse_indices(keep_images), paths)
    return ApiResponse(data=product, message="Product updated successfully")


@router.delete("/products/{product_id}", response_model=ApiResponse[None])
def delete_product(product_id: str):
    """Delete a product and its images"""
    catalog_service.delete_product(product_id)
    return ApiResponse(message="Product deleted successfully")


@router.delete("/products/{product_id}/images/{index}", response_model=ApiResponse[Product])
def delete_product_image(product_id: str, index: int):
    product = catalog_service.delete_product_image(product_id, index)
    return ApiResponse(data=product, message="Image deleted successfully")


@router.patch("/products/{product_id}/stock", response_model=ApiResponse[Product])
def update_stock(product_id: str, request: StockUpdateRequest):
    product = catalog_service.update_stock(product_id, request.stock)
    return ApiResponse(data=product, message="Stock updated successfully")


@router.patch("/products/{product_id}/archive", response_model=ApiResponse[Product])
def archive_product(product_id: str):
    """Hide a product from the public catalog without deleting it"""
    product = catalog_service.archive_product(product_id)
    return ApiResponse(data=product, message="Product archived successfully")


# --- Orders ---


@router.get("/orders", response_model=ApiResponse[OrderPage])
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    search: Optional[str] = Query(None, description="Order number or customer email"),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    orders = order_admin_service.list_orders(
        status=status,
        payment_status=payment_status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return ApiResponse(data=orders, message="Orders fetched successfully")


@router.get("/orders/stats", response_model=ApiResponse[OrderStats])
def order_stats():
    """Counts and revenue by status and payment status"""
    return ApiResponse(data=order_admin_service.stats(), message="Order statistics fetched successfully")


@router.get("/orders/{order_id}", response_model=ApiResponse[Order])
def get_order(order_id: str):
    return ApiResponse(data=order_admin_service.get_order(order_id), message="Order fetched successfully")


@router.patch("/orders/{order_id}/status", response_model=ApiResponse[Order])
def update_order_status(
    order_id: str,
    request: OrderStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
):
    """Move an order to a new status"""
    logger.info(f"Admin {admin.id} setting order {order_id} to {request.status.value}")
    order = order_admin_service.update_status(
        order_id, request.status, request.tracking_number, request.notes
    )
    return ApiResponse(data=order, message="Order status updated successfully")


@router.patch("/orders/{order_id}/payment", response_model=ApiResponse[Order])
def update_payment_status(order_id: str, request: PaymentStatusUpdate):
    order = order_admin_service.update_payment_status(order_id, request.payment_status)
    return ApiResponse(data=order, message="Payment status updated successfully")


@router.delete("/orders/{order_id}", response_model=ApiResponse[None])
def delete_order(order_id: str):
    """Delete a cancelled order"""
    order_admin_service.delete_order(order_id)
    return ApiResponse(message="Order deleted successfully")
