"""Django signals for live document subscriptions.

Saving or deleting a StoredDocument announces ``collection_changed`` once the
surrounding transaction commits; DjangoDocumentStore subscriptions listen to
it and re-run their queries.
"""

import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from enrollments.models import StoredDocument

logger = logging.getLogger(__name__)

collection_changed = Signal()


def _broadcast(collection: str) -> None:
    responses = collection_changed.send_robust(sender=StoredDocument, collection=collection)
    for listener, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "Listener %r failed handling change of %s: %s", listener, collection, response
            )


@receiver([post_save, post_delete], sender=StoredDocument)
def announce_collection_change(sender, instance, **kwargs):
    """Schedule a change notification for the document's collection."""
    collection = instance.collection
    transaction.on_commit(lambda: _broadcast(collection))
