"""Conftest for all pytest configuration - fixtures, hooks, and doctest setup."""

import doctest

import pytest

from refgraph.registry import TypeRegistry
from refgraph.settings import get_global_settings
from refgraph.settings import set_global_settings
from tests.examples.models import register_models

# Doctest Configuration


def pytest_configure(config):
    """Configure pytest with custom doctest options."""
    doctest.ELLIPSIS_MARKER = "..."


def pytest_collection_modifyitems(items):
    """Automatically mark doctest items with the 'doctest' marker."""
    for item in items:
        if isinstance(item, pytest.DoctestItem):
            item.add_marker(pytest.mark.doctest)


# Fixtures


@pytest.fixture
def registry() -> TypeRegistry:
    """Fresh registry with the built-in types and the example models registered."""
    registry = TypeRegistry()
    register_models(registry)
    return registry


@pytest.fixture(autouse=True)
def restore_settings():
    """Restore the global settings after every test."""
    settings = get_global_settings()
    yield
    set_global_settings(settings)
