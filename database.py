"""
Database Helper Functions

MongoDB helpers shared by the request handlers. The client is created by the
application lifespan and handed to each request through the ``get_db``
dependency; every helper takes the database handle explicitly.
"""

import logging
from datetime import datetime, timezone
from typing import Union, Optional, Dict, Any, List

from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

from config import Settings
from errors import InternalError

logger = logging.getLogger(__name__)

USERS = "users"
PRODUCTS = "products"
ORDERS = "orders"
COUNTERS = "counters"


def to_utc(value: datetime) -> datetime:
    """Normalize to UTC at the millisecond precision MongoDB stores."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utcnow() -> datetime:
    return to_utc(datetime.now(timezone.utc))


# Connection lifecycle

def connect(settings: Settings) -> Optional[MongoClient]:
    if not (settings.database_url and settings.database_name):
        logger.warning("DATABASE_URL or DATABASE_NAME not set, running without a database")
        return None
    return MongoClient(settings.database_url, tz_aware=True)


def ensure_indexes(db: Database) -> None:
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[USERS].create_index([("user_id", ASCENDING)], unique=True)
    db[PRODUCTS].create_index([("product_id", ASCENDING)], unique=True)
    db[ORDERS].create_index([("order_id", ASCENDING)], unique=True)
    db[ORDERS].create_index([("customer_id", ASCENDING)])


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise InternalError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return db


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


# Counters

def next_sequence(db: Database, name: str) -> int:
    """Atomically increment and return the named counter (first value is 1)."""
    counter = db[COUNTERS].find_one_and_update(
        {"_id": name},
        {"$inc": {"value": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["value"])


# CRUD helpers

def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    payload = _to_dict(data)
    now = utcnow()
    payload.setdefault('created_at', now)
    payload.setdefault('updated_at', now)
    db[collection_name].insert_one(payload)
    return serialize_doc(payload)


def get_documents(db: Database, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None,
                  sort: Optional[list] = None, projection: Optional[dict] = None) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(int(limit))
    return [serialize_doc(doc) for doc in cursor]


def get_document(db: Database, collection_name: str, filter_dict: dict, projection: Optional[dict] = None) -> Optional[dict]:
    doc = db[collection_name].find_one(filter_dict, projection)
    return serialize_doc(doc) if doc else None


def update_document(db: Database, collection_name: str, filter_dict: dict, update_data: Dict[str, Any]) -> bool:
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = utcnow()
    result = db[collection_name].update_one(filter_dict, update)
    return result.matched_count > 0


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d
