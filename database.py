"""
Database Helper Functions

MongoDB helper functions used by the API endpoints.
Every document id crossing this module's boundary is a string; ObjectId
conversion happens here and nowhere else.
"""

from pymongo import MongoClient, ASCENDING
from bson import ObjectId
from bson.errors import InvalidId
from datetime import datetime, timezone
import logging
import os
from dotenv import load_dotenv
from typing import Union, Optional, Dict, Any, List, Iterable
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

_client = None
db = None


class DatabaseUnavailable(Exception):
    pass


def connect(database_url: Optional[str] = None, database_name: Optional[str] = None, client=None):
    """Bind the module-level database.

    With no arguments the DATABASE_URL and DATABASE_NAME environment variables
    are used. A ready-made client (e.g. mongomock) can be injected instead.
    """
    global _client, db
    database_url = database_url or os.getenv("DATABASE_URL")
    database_name = database_name or os.getenv("DATABASE_NAME")
    if client is None:
        if not (database_url and database_name):
            return None
        client = MongoClient(database_url)
    _client = client
    db = _client[database_name or "edopla"]
    logger.info("Connected to database %s", db.name)
    return db


def disconnect():
    global _client, db
    if _client is not None:
        _client.close()
    _client = None
    db = None


def ensure_indexes():
    _ensure_db()
    # Users without an email leave the field unset rather than null
    db["user"].create_index("identification.email", unique=True, sparse=True)
    db["vendor"].create_index("vendor_name", unique=True)
    # Deleted menu items are purged once expire_at passes
    db["menuitem"].create_index([("expire_at", ASCENDING)], expireAfterSeconds=0)


def _ensure_db():
    if db is None:
        raise DatabaseUnavailable("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def is_valid_id(_id: Any) -> bool:
    return isinstance(_id, str) and ObjectId.is_valid(_id)


def _object_id(_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    _ensure_db()
    payload = _to_dict(data)
    now = datetime.now(timezone.utc)
    payload['created_at'] = now
    payload['updated_at'] = now
    result = db[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
    _ensure_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(int(limit))
    return [serialize_doc(doc) for doc in cursor]


def get_document(collection_name: str, filter_dict: dict) -> Optional[dict]:
    _ensure_db()
    return serialize_doc(db[collection_name].find_one(filter_dict))


def get_document_by_id(collection_name: str, _id: str) -> Optional[dict]:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return None
    return serialize_doc(db[collection_name].find_one({"_id": oid}))


def get_documents_by_ids(collection_name: str, ids: Iterable[str]) -> List[dict]:
    """Fetch documents for a list of ids, keeping the order of ``ids``.

    Ids with no matching document are skipped.
    """
    _ensure_db()
    oids = [oid for oid in (_object_id(i) for i in ids) if oid is not None]
    if not oids:
        return []
    found = {str(doc["_id"]): doc for doc in db[collection_name].find({"_id": {"$in": oids}})}
    return [serialize_doc(found[str(oid)]) for oid in oids if str(oid) in found]


def update_document(collection_name: str, _id: str, update_data: Union[BaseModel, Dict[str, Any]]) -> bool:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return False
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = datetime.now(timezone.utc)
    result = db[collection_name].update_one({"_id": oid}, update)
    return result.matched_count > 0


def modify_document(collection_name: str, _id: str, operations: Dict[str, Any]) -> bool:
    """Apply raw update operators ($push, $pull, $addToSet, ...) to one document."""
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return False
    update = dict(operations)
    update["$set"] = {**update.get("$set", {}), "updated_at": datetime.now(timezone.utc)}
    result = db[collection_name].update_one({"_id": oid}, update)
    return result.matched_count > 0


def delete_document(collection_name: str, _id: str) -> bool:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return False
    result = db[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0


def delete_documents(collection_name: str, ids: Iterable[str]) -> int:
    _ensure_db()
    oids = [oid for oid in (_object_id(i) for i in ids) if oid is not None]
    if not oids:
        return 0
    result = db[collection_name].delete_many({"_id": {"$in": oids}})
    return result.deleted_count


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d


connect()
