from __future__ import annotations

import json
import re
from copy import deepcopy
from typing import Any

from shopbot.infrastructure.persistence_clients import MongoClientManager, RedisClientManager


class DocumentStore:
    """Redis-cached MongoDB key-value store.

    Reads try Redis first and backfill it from MongoDB; writes go to both.
    When neither backend is connected every operation is a no-op.
    """

    def __init__(
        self,
        *,
        mongo_manager: MongoClientManager,
        redis_manager: RedisClientManager,
        collection_name: str = "documents",
        cache_ttl_seconds: int = 24 * 60 * 60,
    ) -> None:
        self.mongo_manager = mongo_manager
        self.redis_manager = redis_manager
        self.collection_name = collection_name
        self.cache_ttl_seconds = cache_ttl_seconds

    def get(self, key: str) -> dict[str, Any] | None:
        cached = self._read_from_redis(key)
        if cached is not None:
            return deepcopy(cached)

        persisted = self._read_from_mongo(key)
        if persisted is not None:
            self._write_to_redis(key, persisted)
            return deepcopy(persisted)
        return None

    def set(self, key: str, value: dict[str, Any]) -> None:
        self._write_to_redis(key, value)
        self._write_to_mongo(key, value)

    def delete(self, key: str) -> None:
        client = self._redis_client()
        if client is not None:
            client.delete(self._redis_key(key))
        collection = self._mongo_collection()
        if collection is not None:
            collection.delete_one({"key": key})

    def keys(self, prefix: str) -> list[str]:
        collection = self._mongo_collection()
        if collection is not None:
            rows = collection.find({"key": {"$regex": f"^{re.escape(prefix)}"}})
            return sorted(str(row["key"]) for row in rows if row.get("key"))

        client = self._redis_client()
        if client is None:
            return []
        namespace = self._redis_key("")
        found: list[str] = []
        for raw in client.scan_iter(match=f"{namespace}{prefix}*"):
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            found.append(str(raw)[len(namespace):])
        return sorted(found)

    @property
    def status(self) -> str:
        return f"mongo:{self.mongo_manager.status},redis:{self.redis_manager.status}"

    def _redis_client(self) -> Any | None:
        return self.redis_manager.client

    def _mongo_collection(self) -> Any | None:
        database = self.mongo_manager.database()
        if database is None:
            return None
        return database[self.collection_name]

    def _redis_key(self, key: str) -> str:
        return f"storebot:{key}"

    def _write_to_redis(self, key: str, value: dict[str, Any]) -> None:
        client = self._redis_client()
        if client is None:
            return
        client.set(self._redis_key(key), json.dumps(value), ex=self.cache_ttl_seconds)

    def _read_from_redis(self, key: str) -> dict[str, Any] | None:
        client = self._redis_client()
        if client is None:
            return None
        payload = client.get(self._redis_key(key))
        if not payload:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError:
            return None
        return decoded if isinstance(decoded, dict) else None

    def _write_to_mongo(self, key: str, value: dict[str, Any]) -> None:
        collection = self._mongo_collection()
        if collection is None:
            return
        collection.update_one(
            {"key": key},
            {"$set": {"key": key, "value": deepcopy(value)}},
            upsert=True,
        )

    def _read_from_mongo(self, key: str) -> dict[str, Any] | None:
        collection = self._mongo_collection()
        if collection is None:
            return None
        row = collection.find_one({"key": key})
        if not row:
            return None
        value = row.get("value")
        return value if isinstance(value, dict) else None
