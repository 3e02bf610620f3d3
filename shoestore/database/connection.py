"""MongoDB connection handling"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from ..core.config import get_settings
from ..errors import InvalidArgumentError

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def init_database(database: Optional[Database] = None) -> Database:
    """
    Bind the database used by every store.

    Args:
        database: An already-open database handle. When omitted a client is
            created from MONGODB_URL / MONGODB_DATABASE.
    """
    global _client, _database
    if database is None:
        settings = get_settings()
        _client = MongoClient(settings.mongodb_url)
        database = _client[settings.mongodb_database]
        logger.info(f"Connected to MongoDB database '{settings.mongodb_database}'")
    _database = database
    return database


def get_database() -> Database:
    """Get the bound database, connecting on first use"""
    if _database is None:
        return init_database()
    return _database


def close_database() -> None:
    """Close the client opened by init_database, if any"""
    global _client, _database
    if _client is not None:
        _client.close()
        logger.info("MongoDB connection closed")
    _client = None
    _database = None


def ensure_indexes(database: Database) -> None:
    """Create the unique indexes the stores rely on"""
    database["users"].create_index([("email", ASCENDING)], unique=True)
    database["carts"].create_index([("user_id", ASCENDING)], unique=True)
    database["orders"].create_index([("order_number", ASCENDING)], unique=True)
    database["orders"].create_index([("user_id", ASCENDING), ("created_at", ASCENDING)])
    database["reviews"].create_index(
        [("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True
    )


def utcnow() -> datetime:
    """Naive UTC timestamp, as pymongo returns stored datetimes"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value: Any, resource: str = "Resource") -> ObjectId:
    """Parse an id from a request, rejecting malformed values"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise InvalidArgumentError(f"Invalid {resource.lower()} id")


def to_str_id(doc: Any) -> Any:
    """Convert a stored document into plain JSON-ready data (``_id`` -> ``id``)"""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [to_str_id(v) for v in doc]
    if isinstance(doc, dict):
        d = {}
        for key, value in doc.items():
            d["id" if key == "_id" else key] = to_str_id(value)
        return d
    return doc
