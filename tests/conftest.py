# ===============================================================================
# PYTEST CONFIGURATION FOR THE LOYALTY BACKEND
# ===============================================================================
"""
Global test configuration.

Test Structure:
- tests/test_{module}.py per core module (ledger, operations, identifiers, ...)
- tests/test_api.py and tests/test_public_dashboard.py for the HTTP surface
- tests/test_concurrency.py only runs on backends with SELECT ... FOR UPDATE

Settings come from backend.test_settings (see pyproject.toml).
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from .helpers import make_admin, make_business, make_operator


@pytest.fixture(autouse=True)
def clear_cache():
    """Slug lookups are cached by the middleware"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return make_admin()


@pytest.fixture
def business(db):
    return make_business('My Coffee Shop', activation_code='WELCOME')


@pytest.fixture
def operator(business):
    return make_operator(business)
