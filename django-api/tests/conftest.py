"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from enrollments.domain import UserIdentity
from enrollments.services.dispatch import InlineDispatcher
from enrollments.stores.memory_store import InMemoryDocumentStore
from factories import NOW, RecordingRenderer


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def reset_wiring():
    """Drop live subscriptions opened by API requests."""
    from enrollments import wiring
    yield
    wiring.reset()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def dispatcher() -> InlineDispatcher:
    return InlineDispatcher()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def user() -> UserIdentity:
    return UserIdentity(id="ana", email="ana@example.com", display_name="Ana Pérez")


@pytest.fixture
def admin_identity() -> UserIdentity:
    return UserIdentity(id="admin", email="admin@example.com", display_name="Admin")
