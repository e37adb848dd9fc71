"""
SQLAlchemy-backed store adapter.

Every record is one row of the ``documents`` table keyed by
``(collection, id)``. Merges run inside a single transaction holding a row
lock, so a read-merge-write never interleaves with another writer.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import delete, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from rewardhub.database import create_session_factory, init_db
from rewardhub.models import Document
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


class SqlStore(StoreAdapter):
    """Store adapter over a relational database."""

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self.SessionLocal = create_session_factory(engine)
        self.product = "SQLite" if engine.dialect.name == "sqlite" else engine.dialect.name.capitalize()
        if create_tables:
            init_db(engine)

    @contextmanager
    def _transaction(self, collection: str, operation: str):
        with DatastoreTrace(self.product, collection, operation):
            try:
                with self.SessionLocal.begin() as session:
                    yield session
            except SQLAlchemyError as e:
                logger.error(f"SQL {operation} on '{collection}' failed: {str(e)}")
                raise StoreError(f"SQL {operation} on '{collection}' failed") from e

    def get_all(self, collection: str) -> dict[str, Record]:
        with self._transaction(collection, "select") as session:
            rows = session.execute(
                select(Document.id, Document.data)
                .where(Document.collection == collection)
                .order_by(Document.id)
            ).all()
        return {row.id: dict(row.data) for row in rows}

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        with self._transaction(collection, "get") as session:
            document = session.get(Document, (collection, record_id))
            return dict(document.data) if document is not None else None

    def create(self, collection: str, record: Record) -> str:
        record_id = generate_push_id()
        with self._transaction(collection, "insert") as session:
            session.add(Document(collection=collection, id=record_id, data=dict(record)))
        return record_id

    def set(self, collection: str, record_id: str, record: Record) -> None:
        with self._transaction(collection, "set") as session:
            document = session.get(Document, (collection, record_id), with_for_update=True)
            if document is None:
                session.add(Document(collection=collection, id=record_id, data=dict(record)))
            else:
                document.data = dict(record)

    def update(
        self,
        collection: str,
        record_id: str,
        partial: Record,
        precondition: Optional[Precondition] = None,
    ) -> Record:
        with self._transaction(collection, "update") as session:
            document = session.get(Document, (collection, record_id), with_for_update=True)
            if document is None:
                raise RecordNotFound(collection, record_id)
            current = dict(document.data)
            extra = precondition(current) if precondition is not None else None
            # assign a new dict; in-place mutation of a JSON column is not tracked
            document.data = {**current, **partial, **(extra or {})}
            return dict(document.data)

    def upsert(
        self,
        collection: str,
        record_id: str,
        partial: Record,
        defaults: Optional[Record] = None,
    ) -> Record:
        with self._transaction(collection, "upsert") as session:
            document = session.get(Document, (collection, record_id), with_for_update=True)
            if document is None:
                merged = {**(defaults or {}), **partial}
                session.add(Document(collection=collection, id=record_id, data=merged))
            else:
                merged = {**(defaults or {}), **document.data, **partial}
                document.data = merged
            return dict(merged)

    def remove(self, collection: str, record_id: str) -> None:
        with self._transaction(collection, "delete") as session:
            session.execute(
                delete(Document).where(
                    Document.collection == collection,
                    Document.id == record_id,
                )
            )

    def ping(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    def close(self) -> None:
        self.engine.dispose()
