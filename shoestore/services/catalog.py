"""
Product Catalog

Admin product management and the public catalog reads. Public reads never
return archived products; admin listings include them.
"""

import logging
import re
from typing import Any, Iterable, Optional

from ..database.connection import to_object_id
from ..database.products import ProductDatabase, product_db
from ..errors import InvalidArgumentError, NotFoundError, StoreError
from ..models.common import Pagination
from ..models.product import (
    BulkUpdateItem,
    BulkUpdateResult,
    Product,
    ProductCreate,
    ProductPage,
    ProductUpdate,
)
from .assets import AssetStore, asset_store
from .presenters import product_view

logger = logging.getLogger(__name__)

MAX_IMAGES = 5
FEATURED_LIMIT = 8
SIMILAR_LIMIT = 6
SORTABLE_FIELDS = {"created_at", "price", "name", "discount", "stock"}


def split_csv(value: Optional[str]) -> list[str]:
    """Split a comma-separated query value, ignoring blanks"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _icontains(value: str) -> dict:
    return {"$regex": re.escape(value), "$options": "i"}


class CatalogService:
    """Product management and catalog queries"""

    def __init__(self, products: ProductDatabase = product_db, assets: AssetStore = asset_store):
        self.products = products
        self.assets = assets

    def _load(self, product_id: str, include_archived: bool = True) -> dict:
        product = self.products.get_product(to_object_id(product_id, "Product"))
        if not product or (product.get("is_archived") and not include_archived):
            raise NotFoundError("Product")
        return product

    def _upload_images(self, file_paths: Iterable[str]) -> list[str]:
        urls = []
        for path in list(file_paths)[:MAX_IMAGES]:
            url = self.assets.upload(path)
            if url:
                urls.append(url)
            else:
                logger.warning(f"Skipping image that failed to upload: {path}")
        return urls

    def _delete_images(self, urls: Iterable[str]) -> None:
        for url in urls:
            if not self.assets.delete(url):
                logger.warning(f"Image not removed from asset host: {url}")

    def _page(self, filters: dict, page: int, limit: int, sort: str = "created_at",
              descending: bool = True, include_archived: bool = False) -> ProductPage:
        docs, total = self.products.search_products(
            filters,
            include_archived=include_archived,
            sort=sort if sort in SORTABLE_FIELDS else "created_at",
            descending=descending,
            page=page,
            limit=limit,
        )
        return ProductPage(
            products=[product_view(d) for d in docs],
            pagination=Pagination.build(total, page, limit),
        )

    # --- Admin writes ---

    def create_product(self, data: ProductCreate, image_paths: Iterable[str] = ()) -> Product:
        fields = data.model_dump(mode="json")
        fields["images"] = self._upload_images(image_paths)
        product = self.products.create_product(fields)
        logger.info(f"Product created: {product['name']} ({product['_id']})")
        return product_view(product)

    def update_product(
        self,
        product_id: str,
        data: ProductUpdate,
        keep_images: Optional[list[int]] = None,
        image_paths: Iterable[str] = (),
    ) -> Product:
        """
        Partially update a product.

        Args:
            keep_images: Indices of existing images to keep; None keeps all
            image_paths: New local image files appended after the kept ones
        """
        product = self._load(product_id)
        fields: dict[str, Any] = data.model_dump(mode="json", exclude_none=True)

        image_paths = list(image_paths)
        if keep_images is not None or image_paths:
            existing = product.get("images", [])
            keep = set(range(len(existing))) if keep_images is None else set(keep_images)
            kept = [url for i, url in enumerate(existing) if i in keep]
            self._delete_images(url for i, url in enumerate(existing) if i not in keep)
            room = max(MAX_IMAGES - len(kept), 0)
            fields["images"] = kept + self._upload_images(image_paths[:room])

        updated = self.products.update_product(product["_id"], fields)
        if updated is None:
            raise NotFoundError("Product")
        return product_view(updated)

    def delete_product_image(self, product_id: str, index: int) -> Product:
        if index < 0:
            raise InvalidArgumentError("Image index must not be negative")
        product = self._load(product_id)
        images = list(product.get("images", []))
        if index >= len(images):
            raise NotFoundError("Image")

        url = images.pop(index)
        self._delete_images([url])
        return product_view(self.products.update_product(product["_id"], {"images": images}))

    def delete_product(self, product_id: str) -> None:
        product = self._load(product_id)
        self._delete_images(product.get("images", []))
        self.products.delete_product(product["_id"])
        logger.info(f"Product deleted: {product['name']} ({product['_id']})")

    def update_stock(self, product_id: str, stock: int) -> Product:
        if stock < 0:
            raise InvalidArgumentError("Stock must not be negative")
        product = self._load(product_id)
        return product_view(self.products.update_product(product["_id"], {"stock": stock}))

    def archive_product(self, product_id: str) -> Product:
        product = self._load(product_id)
        updated = self.products.update_product(product["_id"], {"is_archived": True})
        logger.info(f"Product archived: {product['name']} ({product['_id']})")
        return product_view(updated)

    def bulk_update_products(self, updates: list[BulkUpdateItem]) -> list[BulkUpdateResult]:
        """Apply each update independently and report per-item outcomes"""
        results = []
        for item in updates:
            if not item.id:
                results.append(BulkUpdateResult(success=False, message="Product id is required"))
                continue
            try:
                product = self.update_product(item.id, ProductUpdate(**item.model_dump(exclude={"id"})))
            except StoreError as e:
                results.append(BulkUpdateResult(id=item.id, success=False, message=e.message))
                continue
            results.append(BulkUpdateResult(id=item.id, success=True, product=product))

        failed = sum(1 for r in results if not r.success)
        logger.info(f"Bulk update: {len(results) - failed} applied, {failed} failed")
        return results

    # --- Reads ---

    def get_product(self, product_id: str, include_archived: bool = False) -> Product:
        return product_view(self._load(product_id, include_archived=include_archived))

    def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        sort: str = "created_at",
        order: str = "desc",
        include_archived: bool = False,
    ) -> ProductPage:
        return self._page({}, page, limit, sort, order != "asc", include_archived)

    def by_category(self, category: str, page: int = 1, limit: int = 10) -> ProductPage:
        return self._page({"category": category.lower()}, page, limit)

    def by_brand(self, brand: str, page: int = 1, limit: int = 10) -> ProductPage:
        return self._page({"brand": {"$regex": f"^{re.escape(brand)}$", "$options": "i"}}, page, limit)

    def search(self, keyword: Optional[str], page: int = 1, limit: int = 10) -> ProductPage:
        if not keyword or not keyword.strip():
            raise InvalidArgumentError("Search keyword is required")
        pattern = _icontains(keyword.strip())
        filters = {"$or": [{"name": pattern}, {"description": pattern}, {"brand": pattern}]}
        return self._page(filters, page, limit)

    def featured(self) -> list[Product]:
        docs, _ = self.products.search_products({}, page=1, limit=FEATURED_LIMIT)
        return [product_view(d) for d in docs]

    def on_sale(self, page: int = 1, limit: int = 10) -> ProductPage:
        return self._page({"discount": {"$gt": 0}}, page, limit, sort="discount")

    def filter_products(
        self,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sizes: Optional[str] = None,
        brands: Optional[str] = None,
        genders: Optional[str] = None,
        categories: Optional[str] = None,
        seasons: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ProductPage:
        """Combine price range and comma-separated attribute filters"""
        filters: dict[str, Any] = {}

        price: dict[str, float] = {}
        if min_price is not None:
            price["$gte"] = min_price
        if max_price is not None:
            price["$lte"] = max_price
        if price:
            filters["price"] = price

        if sizes:
            try:
                filters["sizes"] = {"$in": [float(s) for s in split_csv(sizes)]}
            except ValueError:
                raise InvalidArgumentError("Sizes must be numbers")
        if brands:
            filters["brand"] = {"$in": split_csv(brands)}
        for field, value in (("gender", genders), ("category", categories), ("season", seasons)):
            if value:
                filters[field] = {"$in": [v.lower() for v in split_csv(value)]}

        return self._page(filters, page, limit)

    def similar(self, product_id: str) -> list[Product]:
        """Up to six products sharing the brand or category"""
        product = self._load(product_id, include_archived=False)
        alike = [{"category": product["category"]}]
        if product.get("brand"):
            alike.append({"brand": product["brand"]})
        docs, _ = self.products.search_products(
            {"_id": {"$ne": product["_id"]}, "$or": alike},
            page=1,
            limit=SIMILAR_LIMIT,
        )
        return [product_view(d) for d in docs]


# Singleton instance
catalog_service = CatalogService()
