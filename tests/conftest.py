"""Pytest configuration and shared fixtures for the imagemin test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

import logging
import os
from pathlib import Path

import pytest
from utils import register_fake_plugins

from imagemin.plugins import plugin_registry

# Configure Hypothesis for property-based testing
from hypothesis import Phase, Verbosity, settings

settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))

TESTS_DIR = Path(__file__).parent


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests - full pipeline tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture
def registry():
    """Provide the global plugin registry holding only the fake plugins.

    Entry point discovery is disabled so installed plugins cannot leak into
    the tests.
    """
    plugin_registry.clear()
    plugin_registry._initialized = True
    register_fake_plugins(plugin_registry)
    yield plugin_registry
    plugin_registry.clear()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove IMAGEMIN_* variables from the environment."""
    for key in list(os.environ):
        if key.startswith("IMAGEMIN_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Run the test in an empty working directory with an empty home.

    Keeps configuration discovery from finding files outside the test.
    """
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    return work


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo root logger changes made by the CLI's logging setup."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
