"""Test utilities for the imagemin test suite.

Provides sample image bytes, helpers for building input trees and the
registration of the fake plugins from :mod:`fake_plugins`.
"""

import base64
from pathlib import Path

import fake_plugins

# Base64 encoded 1x1 pixel PNG for testing
MINIMAL_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/w8AAn8B9FpQHLwAAAAASUVORK5CYII="
MINIMAL_PNG_BYTES = base64.b64decode(MINIMAL_PNG_B64)

FAKE_PLUGINS = {
    "identity": fake_plugins.identity,
    "upper": fake_plugins.upper,
    "append": fake_plugins.append,
    "strip": fake_plugins.strip,
    "failing": fake_plugins.failing,
    "fail-on": fake_plugins.fail_on,
    "not-bytes": fake_plugins.not_bytes,
    "broken-factory": fake_plugins.broken_factory,
    "not-callable": fake_plugins.not_callable,
    "echo-options": fake_plugins.echo_options,
}


def register_fake_plugins(registry) -> None:
    """Register every fake plugin factory under its test name."""
    for name, factory in FAKE_PLUGINS.items():
        registry.register_factory(name, factory, description=f"Test plugin {name}")


def write_files(base_dir: Path, files: dict) -> list:
    """Create ``files`` (relative path -> bytes) under ``base_dir``.

    Returns
    -------
    list[Path]
        Created paths in the order given

    """
    created = []
    for relative, content in files.items():
        path = base_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        created.append(path)
    return created
