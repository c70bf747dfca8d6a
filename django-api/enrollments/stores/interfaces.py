"""Store interfaces (repository pattern).

The portal talks to a document store: named collections of JSON documents
addressed by id. Stores must be swappable; services convert the documents
they return into domain models through enrollments.stores.records.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

COURSES = "courses"
ENROLLMENTS = "enrollments"
USERS = "users"
ENROLLEE_PROFILES = "enrollee_profiles"
MOVEMENTS = "movements"
LOGS = "logs"
CONFIGURATION = "configuration"


class DocumentNotFound(LookupError):
    """Raised by update/delete when the addressed document does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"{collection}/{document_id}")
        self.collection = collection
        self.document_id = document_id


@dataclass(frozen=True)
class Document:
    """A stored document: its id plus a snapshot of its data."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)


class Operator(Enum):
    EQ = "=="
    IN = "in"


@dataclass(frozen=True)
class Filter:
    """Predicate on a top-level document field."""

    field: str
    op: Operator
    value: Any

    @classmethod
    def eq(cls, field_name: str, value: Any) -> "Filter":
        return cls(field=field_name, op=Operator.EQ, value=value)

    @classmethod
    def is_in(cls, field_name: str, values: Sequence[Any]) -> "Filter":
        return cls(field=field_name, op=Operator.IN, value=tuple(values))

    def matches(self, data: Mapping[str, Any]) -> bool:
        if self.field not in data:
            return False
        actual = data[self.field]
        if self.op is Operator.EQ:
            return actual == self.value
        return actual in self.value


ChangeCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(ABC):
    """Handle returned by DocumentStore.subscribe."""

    @property
    @abstractmethod
    def active(self) -> bool:
        ...

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering snapshots. Safe to call more than once."""
        ...


class DocumentStore(ABC):
    """Interface for document persistence operations.

    Implementations raise StoreUnavailableError when the backend cannot
    serve a call.
    """

    @abstractmethod
    def get(self, collection: str, document_id: str) -> Document | None:
        """Return a document by id, or None if not found."""
        ...

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
    ) -> list[Document]:
        """Return the documents matching every filter.

        ``order_by`` names a field to sort ascending by; prefix it with
        '-' for descending order.
        """
        ...

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Deliver the full matching set now and after every change.

        Every call of ``on_change`` carries the complete current result, never
        a delta. A failure of the live stream is reported once through
        ``on_error`` and ends the subscription.
        """
        ...

    @abstractmethod
    def create(self, collection: str, data: Mapping[str, Any]) -> str:
        """Insert a new document and return its generated id."""
        ...

    @abstractmethod
    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        """Create or replace the document stored under ``document_id``."""
        ...

    @abstractmethod
    def update(self, collection: str, document_id: str, patch: Mapping[str, Any]) -> None:
        """Merge ``patch`` into an existing document.

        Raises:
            DocumentNotFound: If the document does not exist.
        """
        ...

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> None:
        """Remove a document.

        Raises:
            DocumentNotFound: If the document does not exist.
        """
        ...
