"""Django ORM models (persistence layer).

Every collection of the document store lives in one table, keyed by
(collection, key), with the document body in a JSON column. Domain logic
lives in domain/.
"""

import uuid

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


def _new_key() -> str:
    return uuid.uuid4().hex[:20]


class StoredDocument(models.Model):
    """Persistence model for documents of any collection."""

    collection = models.CharField(max_length=64)
    key = models.CharField(max_length=128, default=_new_key)
    data = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["collection", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["collection", "key"], name="uq_document_collection_key"
            ),
        ]
        indexes = [
            models.Index(fields=["collection", "created_at"], name="document_collection_created"),
        ]

    def __str__(self) -> str:
        return f"{self.collection}/{self.key}"
