#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for imagemin.

Constants are organized by category:
1. Plugin Resolution - Entry point group, package naming, defaults
2. Input Matching - Glob detection and junk file filtering
3. Configuration - Config file names and environment variable prefix
"""

from __future__ import annotations

import re

# =============================================================================
# Plugin Resolution
# =============================================================================

# Entry point group scanned for installed plugins
PLUGIN_ENTRY_POINT_GROUP = "imagemin.plugins"

# Plugins are distributed as ``imagemin-<name>`` packages
PLUGIN_PACKAGE_PREFIX = "imagemin-"

# Plugin chain used when the user selects none
DEFAULT_PLUGINS: tuple[str, ...] = (
    "gifsicle",
    "jpegtran",
    "optipng",
    "svgo",
)

# =============================================================================
# Input Matching
# =============================================================================

GLOB_CHARS = "*?["

# OS and editor droppings that are never images
JUNK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^npm-debug\.log$"),
    re.compile(r"^\..*\.swp$"),
    re.compile(r"^\.DS_Store$"),
    re.compile(r"^\.AppleDouble$"),
    re.compile(r"^\.LSOverride$"),
    re.compile(r"^Icon\r$"),
    re.compile(r"^\._.*"),
    re.compile(r"^\.Spotlight-V100(?:$|\/)"),
    re.compile(r"\.Trashes"),
    re.compile(r"^__MACOSX$"),
    re.compile(r"~$"),
    re.compile(r"^Thumbs\.db$"),
    re.compile(r"^ehthumbs\.db$"),
    re.compile(r"^[Dd]esktop\.ini$"),
    re.compile(r"@eaDir$"),
)

# =============================================================================
# Configuration
# =============================================================================

ENV_PREFIX = "IMAGEMIN_"

CONFIG_FILENAMES: tuple[str, ...] = (
    ".imagemin.toml",
    ".imagemin.yaml",
    ".imagemin.yml",
    ".imagemin.json",
)

PYPROJECT_SECTION = "imagemin"
