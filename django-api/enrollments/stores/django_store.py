"""Django ORM implementation of the DocumentStore.

Documents are rows of StoredDocument. Filters become JSON key lookups on
the ``data`` column. Live subscriptions hang off the ``collection_changed``
signal, so they see every write made through the ORM in this process, after
the writing transaction commits.
"""

import logging
import uuid
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from django.db import DatabaseError, transaction

from enrollments.domain.errors import StoreUnavailableError, SubscriptionError
from enrollments.models import StoredDocument
from enrollments.signals import collection_changed
from enrollments.stores.interfaces import (
    ChangeCallback,
    Document,
    DocumentNotFound,
    DocumentStore,
    ErrorCallback,
    Filter,
    Operator,
    Subscription,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DatabaseError as exc:
        logger.error("Document store %s failed: %s", operation, exc)
        raise StoreUnavailableError(operation) from exc


def _to_document(row: StoredDocument) -> Document:
    return Document(id=row.key, data=row.data)


class DjangoSubscription(Subscription):
    """Live query bound to the collection_changed signal."""

    def __init__(
        self,
        store: "DjangoDocumentStore",
        collection: str,
        filters: Sequence[Filter],
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._store = store
        self._collection = collection
        self._filters = tuple(filters)
        self._on_change = on_change
        self._on_error = on_error
        self._uid = f"document-subscription-{uuid.uuid4().hex}"
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        self._active = True
        collection_changed.connect(self._handle_change, weak=False, dispatch_uid=self._uid)
        transaction.on_commit(self._deliver)

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        collection_changed.disconnect(dispatch_uid=self._uid)

    def _handle_change(self, sender, collection: str, **kwargs) -> None:
        if collection == self._collection:
            self._deliver()

    def _deliver(self) -> None:
        if not self._active:
            return
        try:
            documents = self._store.query(self._collection, self._filters)
        except StoreUnavailableError:
            logger.error("Live query on %s failed, closing subscription", self._collection)
            self.unsubscribe()
            self._on_error(SubscriptionError(self._collection))
            return
        self._on_change(documents)


class DjangoDocumentStore(DocumentStore):
    """Relational-database-backed document store using Django ORM."""

    def get(self, collection: str, document_id: str) -> Document | None:
        with _store_errors("get"):
            row = StoredDocument.objects.filter(
                collection=collection, key=document_id
            ).first()
        return _to_document(row) if row is not None else None

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
    ) -> list[Document]:
        rows = StoredDocument.objects.filter(collection=collection)
        for f in filters:
            lookup = f"data__{f.field}" if f.op is Operator.EQ else f"data__{f.field}__in"
            value = f.value if f.op is Operator.EQ else list(f.value)
            rows = rows.filter(**{lookup: value})
        if order_by:
            descending = order_by.startswith("-")
            field = f"{'-' if descending else ''}data__{order_by.lstrip('-')}"
            rows = rows.order_by(field, "created_at")
        with _store_errors("query"):
            return [_to_document(row) for row in rows]

    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        subscription = DjangoSubscription(self, collection, filters, on_change, on_error)
        subscription.start()
        return subscription

    def create(self, collection: str, data: Mapping[str, Any]) -> str:
        with _store_errors("create"):
            row = StoredDocument.objects.create(collection=collection, data=dict(data))
        return row.key

    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        with _store_errors("put"):
            StoredDocument.objects.update_or_create(
                collection=collection, key=document_id, defaults={"data": dict(data)}
            )

    def update(self, collection: str, document_id: str, patch: Mapping[str, Any]) -> None:
        with _store_errors("update"), transaction.atomic():
            row = (
                StoredDocument.objects.select_for_update()
                .filter(collection=collection, key=document_id)
                .first()
            )
            if row is None:
                raise DocumentNotFound(collection, document_id)
            row.data = {**row.data, **patch}
            row.save(update_fields=["data", "updated_at"])

    def delete(self, collection: str, document_id: str) -> None:
        with _store_errors("delete"):
            row = StoredDocument.objects.filter(collection=collection, key=document_id).first()
            if row is None:
                raise DocumentNotFound(collection, document_id)
            row.delete()
