"""
Core engine for korrect.

This module handles:
- Platform detection and binary download/caching
- Known-good release lookup
- Cluster version resolution and its per-config cache
"""

from korrect._core.version import (
    KORRECT_VERSION,
    DEFAULT_BASE_URL,
    BINARY_NAME,
    normalize_version,
    parse_version,
)
from korrect._core.lifecycle import (
    get_platform_info,
    get_binary_path,
    ensure_binary,
    list_installed,
)
from korrect._core.release import get_stable_version
from korrect._core.resolver import (
    compute_fingerprint,
    resolve_target_version,
    clear_version_cache,
)

__all__ = [
    # Version
    "KORRECT_VERSION",
    "DEFAULT_BASE_URL",
    "BINARY_NAME",
    "normalize_version",
    "parse_version",
    # Lifecycle
    "get_platform_info",
    "get_binary_path",
    "ensure_binary",
    "list_installed",
    # Release
    "get_stable_version",
    # Resolver
    "compute_fingerprint",
    "resolve_target_version",
    "clear_version_cache",
]
