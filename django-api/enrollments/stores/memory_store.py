"""Process-local DocumentStore.

Used by the unit tests and for running the services without a database.
Live notifications are delivered synchronously by default; with
``deliver_immediately=False`` they are queued until ``flush()`` so callers
can observe late or reordered delivery.
"""

import copy
import logging
import uuid
from collections import deque
from collections.abc import Mapping, Sequence
from typing import Any

from enrollments.domain.errors import StoreUnavailableError, SubscriptionError
from enrollments.stores.interfaces import (
    ChangeCallback,
    Document,
    DocumentNotFound,
    DocumentStore,
    ErrorCallback,
    Filter,
    Subscription,
)

logger = logging.getLogger(__name__)


class _MemorySubscription(Subscription):
    def __init__(
        self,
        collection: str,
        filters: Sequence[Filter],
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> None:
        self.collection = collection
        self.filters = tuple(filters)
        self.on_change = on_change
        self.on_error = on_error
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        self._active = False


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store with optional deferred notification delivery."""

    def __init__(self, deliver_immediately: bool = True) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._subscriptions: list[_MemorySubscription] = []
        self._pending: deque[tuple[_MemorySubscription, list[Document]]] = deque()
        self.deliver_immediately = deliver_immediately
        self.offline = False

    # reads

    def get(self, collection: str, document_id: str) -> Document | None:
        self._ensure_online("get")
        data = self._collections.get(collection, {}).get(document_id)
        if data is None:
            return None
        return Document(id=document_id, data=copy.deepcopy(data))

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
    ) -> list[Document]:
        self._ensure_online("query")
        return self._select(collection, filters, order_by)

    def subscribe(
        self,
        collection: str,
        filters: Sequence[Filter],
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        self._ensure_online("subscribe")
        subscription = _MemorySubscription(collection, filters, on_change, on_error)
        self._subscriptions.append(subscription)
        self._notify(subscription)
        return subscription

    # writes

    def create(self, collection: str, data: Mapping[str, Any]) -> str:
        self._ensure_online("create")
        document_id = uuid.uuid4().hex[:20]
        self._collections.setdefault(collection, {})[document_id] = copy.deepcopy(dict(data))
        self._changed(collection)
        return document_id

    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> None:
        self._ensure_online("put")
        self._collections.setdefault(collection, {})[document_id] = copy.deepcopy(dict(data))
        self._changed(collection)

    def update(self, collection: str, document_id: str, patch: Mapping[str, Any]) -> None:
        self._ensure_online("update")
        documents = self._collections.get(collection, {})
        if document_id not in documents:
            raise DocumentNotFound(collection, document_id)
        documents[document_id].update(copy.deepcopy(dict(patch)))
        self._changed(collection)

    def delete(self, collection: str, document_id: str) -> None:
        self._ensure_online("delete")
        documents = self._collections.get(collection, {})
        if document_id not in documents:
            raise DocumentNotFound(collection, document_id)
        del documents[document_id]
        self._changed(collection)

    # live delivery

    def flush(self) -> int:
        """Deliver queued snapshots in order and return how many were delivered."""
        delivered = 0
        while self._pending:
            subscription, documents = self._pending.popleft()
            if subscription.active:
                subscription.on_change(documents)
                delivered += 1
        return delivered

    def break_subscriptions(self, collection: str) -> None:
        """Fail every live subscription on ``collection``."""
        for subscription in list(self._subscriptions):
            if subscription.collection == collection and subscription.active:
                subscription.unsubscribe()
                subscription.on_error(SubscriptionError(collection))
        self._prune()

    def listener_count(self, collection: str) -> int:
        return sum(
            1
            for subscription in self._subscriptions
            if subscription.collection == collection and subscription.active
        )

    def _changed(self, collection: str) -> None:
        for subscription in list(self._subscriptions):
            if subscription.collection == collection:
                self._notify(subscription)
        self._prune()

    def _notify(self, subscription: _MemorySubscription) -> None:
        if not subscription.active:
            return
        documents = self._select(subscription.collection, subscription.filters, None)
        if self.deliver_immediately:
            subscription.on_change(documents)
        else:
            self._pending.append((subscription, documents))

    def _prune(self) -> None:
        self._subscriptions = [s for s in self._subscriptions if s.active]

    def _select(
        self, collection: str, filters: Sequence[Filter], order_by: str | None
    ) -> list[Document]:
        documents = [
            Document(id=document_id, data=copy.deepcopy(data))
            for document_id, data in self._collections.get(collection, {}).items()
            if all(f.matches(data) for f in filters)
        ]
        if order_by:
            key = order_by.lstrip("-")
            present = [d for d in documents if d.data.get(key) is not None]
            present.sort(key=lambda d: d.data[key], reverse=order_by.startswith("-"))
            # documents without the field sort last in either direction
            documents = present + [d for d in documents if d.data.get(key) is None]
        return documents

    def _ensure_online(self, operation: str) -> None:
        if self.offline:
            logger.warning("Memory store offline, rejecting %s", operation)
            raise StoreUnavailableError(operation)
