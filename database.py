"""
MongoDB connection for the remote store.

`db` is None when DATABASE_URL / DATABASE_NAME are not set; callers treat that as the remote being
unavailable and fall back to the local store.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel
from pymongo import MongoClient

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
MONGO_TIMEOUT_MS = os.getenv("MONGO_TIMEOUT_MS")

db = None

if DATABASE_URL and DATABASE_NAME:
    client_kwargs = {}
    if MONGO_TIMEOUT_MS:
        client_kwargs["serverSelectionTimeoutMS"] = int(MONGO_TIMEOUT_MS)
    client = MongoClient(DATABASE_URL, **client_kwargs)
    db = client[DATABASE_NAME]
    logger.info("Remote store configured: %s", DATABASE_NAME)
else:
    logger.info("DATABASE_URL/DATABASE_NAME not set; running on the local store only")


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document with created_at/updated_at stamps and return its id."""
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()

    now = datetime.now(timezone.utc)
    data_dict.setdefault("created_at", now)
    data_dict["updated_at"] = now

    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None):
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
