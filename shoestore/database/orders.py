"""Order storage"""

import uuid
from datetime import datetime
from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from .connection import get_database, utcnow


def generate_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


class OrderDatabase:
    """MongoDB-backed order storage"""

    collection_name = "orders"
    order_number_attempts = 3

    @property
    def collection(self) -> Collection:
        return get_database()[self.collection_name]

    def create_order(self, fields: dict[str, Any]) -> dict:
        """Insert an order under a fresh order number"""
        now = utcnow()
        for attempt in range(self.order_number_attempts):
            doc = {
                **fields,
                "order_number": generate_order_number(),
                "created_at": now,
                "updated_at": now,
            }
            try:
                result = self.collection.insert_one(doc)
            except DuplicateKeyError:
                if attempt >= self.order_number_attempts - 1:
                    raise
                continue
            doc["_id"] = result.inserted_id
            return doc

    def get_order(self, order_id: ObjectId, user_id: Optional[ObjectId] = None) -> Optional[dict]:
        """Get an order by ID, optionally scoped to its owner"""
        query: dict[str, Any] = {"_id": order_id}
        if user_id is not None:
            query["user_id"] = user_id
        return self.collection.find_one(query)

    def list_orders(
        self,
        filters: Optional[dict] = None,
        sort: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[dict], int]:
        """List orders matching a filter, newest first by default"""
        query = filters or {}
        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort(sort, DESCENDING if descending else ASCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total

    def transition_status(
        self,
        order_id: ObjectId,
        from_statuses: Iterable[str],
        fields: dict[str, Any],
        user_id: Optional[ObjectId] = None,
    ) -> Optional[dict]:
        """
        Compare-and-swap update guarded by the current status.

        Returns:
            The updated order, or None if the order is missing or its status
            is no longer one of ``from_statuses``
        """
        query: dict[str, Any] = {"_id": order_id, "status": {"$in": list(from_statuses)}}
        if user_id is not None:
            query["user_id"] = user_id
        return self.collection.find_one_and_update(
            query,
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def update_order(self, order_id: ObjectId, fields: dict[str, Any]) -> Optional[dict]:
        """Set fields on an order"""
        return self.collection.find_one_and_update(
            {"_id": order_id},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def delete_order(self, order_id: ObjectId) -> bool:
        result = self.collection.delete_one({"_id": order_id})
        return result.deleted_count > 0

    def group_totals(self, field: Optional[str]) -> list[dict]:
        """Count and sum ``final_amount`` grouped by a field (or overall)"""
        group_key = f"${field}" if field else None
        return list(self.collection.aggregate([
            {
                "$group": {
                    "_id": group_key,
                    "count": {"$sum": 1},
                    "total_amount": {"$sum": "$final_amount"},
                    "average_amount": {"$avg": "$final_amount"},
                }
            },
            {"$sort": {"_id": 1}},
        ]))

    def count_since(self, since: datetime) -> int:
        return self.collection.count_documents({"created_at": {"$gte": since}})


# Singleton instance
order_db = OrderDatabase()
