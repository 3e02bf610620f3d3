"""Cart storage"""

from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection

from .connection import get_database, utcnow


class CartDatabase:
    """One cart document per user"""

    collection_name = "carts"

    @property
    def collection(self) -> Collection:
        return get_database()[self.collection_name]

    def get_cart(self, user_id: ObjectId) -> Optional[dict]:
        """Get a user's cart without creating it"""
        return self.collection.find_one({"user_id": user_id})

    def get_or_create_cart(self, user_id: ObjectId) -> dict:
        """Get existing cart or create an empty one"""
        return self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$setOnInsert": {"user_id": user_id, "items": [], "updated_at": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    def save_items(self, user_id: ObjectId, items: list[dict]) -> dict:
        """Replace the cart lines"""
        return self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": {"items": items, "updated_at": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    def clear_cart(self, user_id: ObjectId) -> dict:
        """Clear all lines from the cart"""
        return self.save_items(user_id, [])


# Singleton instance
cart_db = CartDatabase()
