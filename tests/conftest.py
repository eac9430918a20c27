"""Pytest configuration and shared fixtures for the richdoc test suite.

This module provides shared fixtures, test configuration, and helpers that
are used across the entire test suite.
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from richdoc.extensions.manager import ExtensionManager
from richdoc.model.selection import TextSelection
from richdoc.view.notifications import NotificationBus

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")


@pytest.fixture
def manager():
    """Provide an extension manager with the built-in extensions."""
    return ExtensionManager.default()


@pytest.fixture
def schema(manager):
    """Provide the frozen schema of the built-in extensions."""
    return manager.schema


@pytest.fixture
def bus():
    """Provide a private notification bus so tests never share subscribers."""
    return NotificationBus()


@pytest.fixture
def build(schema):
    """Provide small document builders bound to the default schema.

    Returns
    -------
    SimpleNamespace-like object
        ``doc(*blocks)``, ``p(text)``, ``h(level, text, collapsed=None)``,
        ``code(text)``, ``ul(*items)``, ``li(*blocks)``, ``img(src)``

    """

    class Builders:
        @staticmethod
        def doc(*blocks):
            return schema.node("doc", None, blocks)

        @staticmethod
        def p(*parts):
            return schema.node("paragraph", None, _inline(schema, parts))

        @staticmethod
        def h(level, *parts, collapsed=None):
            return schema.node("heading", {"level": level, "collapsed": collapsed}, _inline(schema, parts))

        @staticmethod
        def code(text="", language=None):
            return schema.node("code_block", {"language": language}, [schema.text(text)] if text else [])

        @staticmethod
        def ul(*items):
            return schema.node("bullet_list", None, items)

        @staticmethod
        def li(*blocks):
            return schema.node("list_item", None, blocks)

        @staticmethod
        def quote(*blocks):
            return schema.node("blockquote", None, blocks)

        @staticmethod
        def img(src, alt=None):
            return schema.node("image", {"src": src, "alt": alt})

    return Builders()


@pytest.fixture
def state_at(manager):
    """Provide a factory for editor states with a cursor or range selection."""

    def factory(doc, anchor, head=None):
        return manager.create_state(doc, TextSelection.create(doc, anchor, head))

    return factory


def _inline(schema, parts):
    return [schema.text(part) if isinstance(part, str) else part for part in parts if part != ""]
