"""Shared pytest configuration and fixtures."""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

pytest_plugins = [
    "bookings.tests.fixtures",
]


@pytest.fixture
def api_client():
    """DRF API client for request/response helpers."""
    return APIClient()


@pytest.fixture(autouse=True)
def _clear_cache():
    """Anonymous booking, quote and webhook calls share the 100/hour anon bucket in locmem."""
    cache.clear()
    yield
    cache.clear()
