"""
Redis-backed store adapter.

Each collection is one Redis hash, ``<namespace>:<collection>``, mapping
record id to the JSON-encoded record. Merges run as WATCH/MULTI optimistic
transactions so concurrent writers never lose fields.
"""
import json
import logging
from contextlib import contextmanager
from typing import Optional

import redis

from rewardhub.monitoring import DatastoreTrace
from rewardhub.store.base import (
    Precondition,
    Record,
    RecordNotFound,
    StoreAdapter,
    StoreError,
)
from rewardhub.store.push_ids import generate_push_id

logger = logging.getLogger(__name__)


class RedisStore(StoreAdapter):
    """Store adapter over a Redis connection pool."""

    product = "Redis"

    def __init__(self, client: redis.Redis, namespace: str = "rewardhub"):
        self.client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "rewardhub") -> "RedisStore":
        """Create a store with a pooled client for ``url``."""
        client = redis.from_url(
            url,
            decode_responses=True,
            max_connections=50,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        logger.info(f"Redis store configured: {url} (namespace '{namespace}')")
        return cls(client, namespace)

    def _key(self, collection: str) -> str:
        return f"{self.namespace}:{collection}"

    @contextmanager
    def _op(self, collection: str, operation: str):
        with DatastoreTrace(self.product, collection, operation):
            try:
                yield
            except redis.RedisError as e:
                logger.error(f"Redis {operation} on '{collection}' failed: {str(e)}")
                raise StoreError(f"Redis {operation} on '{collection}' failed") from e

    def get_all(self, collection: str) -> dict[str, Record]:
        with self._op(collection, "hgetall"):
            raw = self.client.hgetall(self._key(collection))
        return {record_id: json.loads(raw[record_id]) for record_id in sorted(raw)}

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        with self._op(collection, "hget"):
            raw = self.client.hget(self._key(collection), record_id)
        return json.loads(raw) if raw is not None else None

    def create(self, collection: str, record: Record) -> str:
        record_id = generate_push_id()
        with self._op(collection, "hsetnx"):
            created = self.client.hsetnx(
                self._key(collection), record_id, json.dumps(record, default=str)
            )
        if not created:
            raise StoreError(f"Push id collision in '{collection}': {record_id}")
        return record_id

    def set(self, collection: str, record_id: str, record: Record) -> None:
        with self._op(collection, "hset"):
            self.client.hset(self._key(collection), record_id, json.dumps(record, default=str))

    def update(
        self,
        collection: str,
        record_id: str,
        partial: Record,
        precondition: Optional[Precondition] = None,
    ) -> Record:
        key = self._key(collection)

        def merge(pipe):
            raw = pipe.hget(key, record_id)
            if raw is None:
                raise RecordNotFound(collection, record_id)
            current = json.loads(raw)
            extra = precondition(current) if precondition is not None else None
            merged = {**current, **partial, **(extra or {})}
            pipe.multi()
            pipe.hset(key, record_id, json.dumps(merged, default=str))
            return merged

        with self._op(collection, "update"):
            return self.client.transaction(merge, key, value_from_callable=True)

    def upsert(
        self,
        collection: str,
        record_id: str,
        partial: Record,
        defaults: Optional[Record] = None,
    ) -> Record:
        key = self._key(collection)

        def merge(pipe):
            raw = pipe.hget(key, record_id)
            current = json.loads(raw) if raw is not None else {}
            merged = {**(defaults or {}), **current, **partial}
            pipe.multi()
            pipe.hset(key, record_id, json.dumps(merged, default=str))
            return merged

        with self._op(collection, "upsert"):
            return self.client.transaction(merge, key, value_from_callable=True)

    def remove(self, collection: str, record_id: str) -> None:
        with self._op(collection, "hdel"):
            self.client.hdel(self._key(collection), record_id)

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        self.client.close()
