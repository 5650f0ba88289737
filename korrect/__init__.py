"""
korrect: run the kubectl that matches your cluster.

A transparent shim for kubectl. Each invocation:
- fetches the current stable kubectl release and makes sure it is installed
- works out the server version of the active cluster (cached per kubeconfig)
- downloads the matching kubectl on first use
- runs it with the original arguments, stdin/stdout/stderr and exit code

Installation:
    pip install korrect
    ln -s "$(command -v korrect-shim)" ~/.local/bin/kubectl

Library use:
    from korrect import ShimConfig, resolve_target_version, ensure_binary

    config = ShimConfig.from_env()
    version = resolve_target_version(config)
    kubectl = ensure_binary(config, version)
"""

from korrect.types import Version, InstalledBinary
from korrect.errors import (
    KorrectError,
    NetworkUnavailableError,
    UpstreamError,
    MalformedVersionError,
    FilesystemError,
    SubprocessError,
    ConfigError,
)
from korrect.config import ShimConfig
from korrect._core.version import KORRECT_VERSION, normalize_version
from korrect._core.lifecycle import (
    get_platform_info,
    ensure_binary,
    list_installed,
)
from korrect._core.release import get_stable_version
from korrect._core.resolver import (
    compute_fingerprint,
    resolve_target_version,
    clear_version_cache,
)
from korrect.shim import run

__version__ = KORRECT_VERSION

__all__ = [
    # Version
    "__version__",
    # Types
    "Version",
    "InstalledBinary",
    # Errors
    "KorrectError",
    "NetworkUnavailableError",
    "UpstreamError",
    "MalformedVersionError",
    "FilesystemError",
    "SubprocessError",
    "ConfigError",
    # Config
    "ShimConfig",
    # Core
    "normalize_version",
    "get_platform_info",
    "ensure_binary",
    "list_installed",
    "get_stable_version",
    "compute_fingerprint",
    "resolve_target_version",
    "clear_version_cache",
    # Dispatch
    "run",
]
