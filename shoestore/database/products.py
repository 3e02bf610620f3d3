"""Product catalog storage"""

from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from .connection import get_database, utcnow

NOT_ARCHIVED = {"is_archived": {"$ne": True}}


class ProductDatabase:
    """MongoDB-backed product catalog"""

    collection_name = "products"

    @property
    def collection(self) -> Collection:
        return get_database()[self.collection_name]

    def create_product(self, fields: dict[str, Any]) -> dict:
        """Insert a product and return the stored document"""
        doc = {
            "description": None,
            "discount": 0,
            "brand": None,
            "images": [],
            "sizes": [],
            "stock": 0,
            "season": "all",
            **fields,
            "is_archived": False,
            "created_at": utcnow(),
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_product(self, product_id: ObjectId) -> Optional[dict]:
        """Get a product by ID"""
        return self.collection.find_one({"_id": product_id})

    def get_products(self, product_ids: Iterable[ObjectId]) -> dict[ObjectId, dict]:
        """Get several products keyed by ID; missing IDs are simply absent"""
        ids = list(set(product_ids))
        if not ids:
            return {}
        return {doc["_id"]: doc for doc in self.collection.find({"_id": {"$in": ids}})}

    def search_products(
        self,
        filters: Optional[dict] = None,
        include_archived: bool = False,
        sort: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[dict], int]:
        """
        Search products with a filter document.

        Returns:
            Tuple of (matching products, total count)
        """
        query = dict(filters or {})
        if not include_archived:
            query.update(NOT_ARCHIVED)

        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort(sort, DESCENDING if descending else ASCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total

    def update_product(self, product_id: ObjectId, fields: dict[str, Any]) -> Optional[dict]:
        """Set fields on a product, returning the updated document"""
        if not fields:
            return self.get_product(product_id)
        return self.collection.find_one_and_update(
            {"_id": product_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    def delete_product(self, product_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": product_id})
        return result.deleted_count > 0

    def reserve_stock(self, product_id: ObjectId, quantity: int) -> Optional[dict]:
        """
        Atomically take ``quantity`` units out of stock.

        The decrement only applies while ``stock >= quantity``, so stock can
        never go negative.

        Returns:
            The updated product, or None if the product is gone or short
        """
        return self.collection.find_one_and_update(
            {"_id": product_id, "stock": {"$gte": quantity}},
            {"$inc": {"stock": -quantity}},
            return_document=ReturnDocument.AFTER,
        )

    def release_stock(self, product_id: ObjectId, quantity: int) -> bool:
        """Return ``quantity`` units to stock"""
        result = self.collection.update_one(
            {"_id": product_id},
            {"$inc": {"stock": quantity}},
        )
        return result.matched_count > 0


# Singleton instance
product_db = ProductDatabase()
