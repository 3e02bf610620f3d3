"""Review storage"""

from typing import Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection

from .connection import get_database, utcnow


class ReviewDatabase:
    """One review per user per product"""

    collection_name = "reviews"

    @property
    def collection(self) -> Collection:
        return get_database()[self.collection_name]

    def create_review(self, user_id: ObjectId, product_id: ObjectId, rating: int, review: str) -> dict:
        doc = {
            "user_id": user_id,
            "product_id": product_id,
            "rating": rating,
            "review": review.strip(),
            "created_at": utcnow(),
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_review(self, user_id: ObjectId, product_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"user_id": user_id, "product_id": product_id})

    def list_reviews(self, product_id: ObjectId, page: int = 1, limit: int = 10) -> tuple[list[dict], int]:
        query = {"product_id": product_id}
        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total

    def average_rating(self, product_id: ObjectId) -> float:
        result = list(self.collection.aggregate([
            {"$match": {"product_id": product_id}},
            {"$group": {"_id": None, "average_rating": {"$avg": "$rating"}}},
        ]))
        if not result or result[0]["average_rating"] is None:
            return 0.0
        return float(result[0]["average_rating"])

    def delete_review(self, review_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": review_id})
        return result.deleted_count > 0


# Singleton instance
review_db = ReviewDatabase()
