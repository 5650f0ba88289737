"""
Process-wide configuration for korrect.

All ambient state (install root, cache root, release host, connection
config override) is resolved once by ShimConfig.from_env() and passed
explicitly to every component afterwards.

Environment Variables:
    KORRECT_BASE_URL: Release host (default: https://dl.k8s.io)
    KORRECT_BIN_DIR: Binary install directory (default: ~/.korrect/bin)
    KORRECT_CACHE_DIR: Version cache directory (default: user cache dir)
    KORRECT_HTTP_TIMEOUT: Network timeout in seconds (default: 30)
    KORRECT_QUERY_TIMEOUT: Cluster query timeout in seconds (default: 60)
    KORRECT_NO_PROGRESS: Disable the download progress bar when set
    KUBECONFIG: Connection config override
    DEBUG: "true" enables debug logging
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from platformdirs import user_cache_dir

from korrect._core.lifecycle import get_platform_info
from korrect._core.version import DEFAULT_BASE_URL
from korrect.errors import ConfigError

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_QUERY_TIMEOUT = 60.0


def default_bin_dir() -> Path:
    return Path.home() / ".korrect" / "bin"


def default_cache_dir() -> Path:
    return Path(user_cache_dir("korrect"))


def default_kubeconfig() -> str:
    return str(Path.home() / ".kube" / "config")


def _parse_timeout(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class ShimConfig:
    """
    Configuration for version resolution and dispatch.
    
    Attributes:
        base_url: Release host serving stable.txt and binaries
        bin_dir: Directory holding kubectl-{version} binaries
        cache_dir: Directory holding one version file per fingerprint
        kubeconfig: Explicit connection config path(s), overrides the default
        default_kubeconfig: Connection config used when no override is set
        os_name: Vendor OS token (see get_platform_info)
        arch: Vendor architecture token (see get_platform_info)
        http_timeout: Timeout for every network request, in seconds
        query_timeout: Timeout for the cluster version query, in seconds
        show_progress: Render a download progress bar on stderr
        debug: Verbose logging
    """
    base_url: str = DEFAULT_BASE_URL
    bin_dir: Path = field(default_factory=default_bin_dir)
    cache_dir: Path = field(default_factory=default_cache_dir)
    kubeconfig: Optional[str] = None
    default_kubeconfig: str = field(default_factory=default_kubeconfig)
    os_name: str = ""
    arch: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    show_progress: bool = True
    debug: bool = False
    
    def __post_init__(self) -> None:
        if not self.os_name or not self.arch:
            os_name, arch = get_platform_info()
            self.os_name = self.os_name or os_name
            self.arch = self.arch or arch
        self.bin_dir = Path(self.bin_dir)
        self.cache_dir = Path(self.cache_dir)
    
    @property
    def connection_config(self) -> str:
        """The connection config path(s) in effect: override first, then default."""
        return self.kubeconfig or self.default_kubeconfig
    
    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ShimConfig":
        """
        Build the configuration from environment variables.
        
        Args:
            environ: Mapping to read (default: os.environ)
            
        Returns:
            ShimConfig
            
        Raises:
            ConfigError: If a numeric setting is invalid
        """
        env = os.environ if environ is None else environ
        
        kwargs = {}
        if env.get("KORRECT_BIN_DIR"):
            kwargs["bin_dir"] = Path(env["KORRECT_BIN_DIR"]).expanduser()
        if env.get("KORRECT_CACHE_DIR"):
            kwargs["cache_dir"] = Path(env["KORRECT_CACHE_DIR"]).expanduser()
        
        return cls(
            base_url=env.get("KORRECT_BASE_URL") or DEFAULT_BASE_URL,
            kubeconfig=env.get("KUBECONFIG") or None,
            http_timeout=_parse_timeout(env, "KORRECT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            query_timeout=_parse_timeout(env, "KORRECT_QUERY_TIMEOUT", DEFAULT_QUERY_TIMEOUT),
            show_progress=not env.get("KORRECT_NO_PROGRESS"),
            debug=env.get("DEBUG") == "true",
            **kwargs,
        )
