from __future__ import annotations

from typing import Any

from pymongo import MongoClient
from pymongo.collection import Collection

from core.config import settings


def get_mongo(url: str | None = None, db_name: str | None = None) -> Collection:
    client = MongoClient(url or settings.MONGO_URL, serverSelectionTimeoutMS=2000)
    db = client[db_name or settings.MONGO_DB]
    return db[settings.MONGO_COLLECTION]


class MongoKeyValueStore:
    """One Mongo document per key: {_id: key, value: <json>}."""

    def __init__(self, collection: Collection | None = None):
        self.col = collection if collection is not None else get_mongo()

    def get(self, key: str) -> Any | None:
        doc = self.col.find_one({"_id": key})
        return None if doc is None else doc.get("value")

    def put(self, key: str, value: Any) -> None:
        self.col.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)

    def replace(self, key: str, value: dict[str, Any], expected_version: int) -> bool:
        # single-document filter+replace is atomic in Mongo
        version: Any = expected_version
        if expected_version == 0:
            # {"$in": [..., None]} also matches documents with no version key
            version = {"$in": [0, None]}
        res = self.col.find_one_and_replace(
            {"_id": key, "value.version": version},
            {"_id": key, "value": value},
        )
        return res is not None

    def append(self, key: str, item: Any) -> None:
        self.col.update_one({"_id": key}, {"$push": {"value": item}}, upsert=True)

    def delete(self, key: str) -> None:
        self.col.delete_one({"_id": key})
