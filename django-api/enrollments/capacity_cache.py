"""Publishes live occupancy into Django's cache for the catalog handlers.

Cache keys:
- courses:{id}:capacity -> CapacityPatch.as_dict()
"""

import logging

from django.core.cache import cache

from enrollments.domain import CapacityPatch
from enrollments.services.collaborators import CapacityRenderer

logger = logging.getLogger(__name__)

CAPACITY_TTL = 60 * 10


def capacity_key(course_id: str) -> str:
    return f"courses:{course_id}:capacity"


def cached_capacity(course_id: str) -> dict | None:
    return cache.get(capacity_key(course_id))


class CacheCapacityRenderer(CapacityRenderer):
    """Writes each patch to the cache, replacing the previous one."""

    def __init__(self, timeout: int = CAPACITY_TTL) -> None:
        self._timeout = timeout

    def render(self, patch: CapacityPatch) -> None:
        cache.set(capacity_key(patch.course_id), patch.as_dict(), self._timeout)
        logger.debug(
            "Course %s capacity: %d occupied, %d available",
            patch.course_id,
            patch.occupied,
            patch.available,
        )
