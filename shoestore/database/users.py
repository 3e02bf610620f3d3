"""Account storage"""

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection

from .connection import get_database, utcnow

# Never leave the store layer through a response
PRIVATE_FIELDS = ("password", "refresh_token", "reset_password_token", "reset_password_expire")


def strip_private(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k not in PRIVATE_FIELDS}


class UserDatabase:
    """MongoDB-backed accounts"""

    collection_name = "users"

    @property
    def collection(self) -> Collection:
        return get_database()[self.collection_name]

    def create_user(self, name: str, email: str, password_hash: str, role: str = "user") -> dict:
        now = utcnow()
        doc = {
            "name": name,
            "email": email,
            "password": password_hash,
            "role": role,
            "phone": None,
            "address": None,
            "wishlist": [],
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_user(self, user_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": user_id})

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email})

    def get_users(self, user_ids: list[ObjectId]) -> dict[ObjectId, dict]:
        if not user_ids:
            return {}
        return {u["_id"]: u for u in self.collection.find({"_id": {"$in": list(set(user_ids))}})}

    def list_users(self) -> list[dict]:
        return list(self.collection.find().sort("created_at", ASCENDING))

    def update_user(
        self,
        user_id: ObjectId,
        set_fields: Optional[dict[str, Any]] = None,
        unset_fields: tuple[str, ...] = (),
    ) -> Optional[dict]:
        update: dict[str, Any] = {"$set": {**(set_fields or {}), "updated_at": utcnow()}}
        if unset_fields:
            update["$unset"] = {field: "" for field in unset_fields}
        return self.collection.find_one_and_update(
            {"_id": user_id},
            update,
            return_document=ReturnDocument.AFTER,
        )

    def find_by_reset_token(self, token_digest: str, now: datetime) -> Optional[dict]:
        """Find the account holding an unexpired reset token digest"""
        return self.collection.find_one({
            "reset_password_token": token_digest,
            "reset_password_expire": {"$gt": now},
        })

    def add_to_wishlist(self, user_id: ObjectId, product_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$addToSet": {"wishlist": product_id}},
            return_document=ReturnDocument.AFTER,
        )

    def remove_from_wishlist(self, user_id: ObjectId, product_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": user_id},
            {"$pull": {"wishlist": product_id}},
            return_document=ReturnDocument.AFTER,
        )


# Singleton instance
user_db = UserDatabase()
