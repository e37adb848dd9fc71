"""
Store adapter contract over a path-addressed key-value database.

Records live at ``<collection>/<id>`` and are plain JSON-compatible dicts.
The id is never stored inside the record; callers merge it in.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

Record = dict[str, Any]
Precondition = Callable[[Record], Optional[Record]]


class StoreError(Exception):
    """Any failure reaching or talking to the underlying database."""


class RecordNotFound(Exception):
    """Raised when a write targets a record that does not exist."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class StoreAdapter(ABC):
    """
    Abstract store adapter.

    Implementations perform no retries and no caching; every call is one
    round trip (or one optimistic transaction) against the backend.
    """

    product = "Unknown"

    @abstractmethod
    def get_all(self, collection: str) -> dict[str, Record]:
        """Return every record in ``collection`` keyed by id, in key order."""

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Record]:
        """Return a single record or None."""

    @abstractmethod
    def create(self, collection: str, record: Record) -> str:
        """Store ``record`` under a freshly generated push id and return it."""

    @abstractmethod
    def set(self, collection: str, record_id: str, record: Record) -> None:
        """Replace the record at ``collection/record_id``."""

    @abstractmethod
    def update(
        self,
        collection: str,
        record_id: str,
        partial: Record,
        precondition: Optional[Precondition] = None,
    ) -> Record:
        """
        Shallow-merge ``partial`` into an existing record.

        ``precondition`` is called with the current record inside the same
        atomic unit. It may raise to abort the write, or return extra
        fields computed from the current record to merge on top of
        ``partial``.

        Returns:
            The merged record

        Raises:
            RecordNotFound: if the record does not exist
        """

    @abstractmethod
    def upsert(
        self,
        collection: str,
        record_id: str,
        partial: Record,
        defaults: Optional[Record] = None,
    ) -> Record:
        """
        Atomically create or merge the record at a fixed id.

        ``defaults`` are written only for fields the stored record lacks.
        """

    @abstractmethod
    def remove(self, collection: str, record_id: str) -> None:
        """Delete a record. Removing an absent record is a no-op."""

    @abstractmethod
    def ping(self) -> bool:
        """Check backend connectivity."""

    def close(self) -> None:
        """Release connections held by the adapter."""
