"""
Cluster version resolution for korrect.

The version a cluster expects is cached per connection config, keyed by a
truncated sha256 of the config file contents. On a cache miss the
known-good kubectl is asked for the server version:

    kubectl version -o json  ->  {"serverVersion": {"gitVersion": "..."}}

Cache entries never expire; they are removed only by clear_version_cache().
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from korrect._core.lifecycle import ensure_binary
from korrect._core.release import get_stable_version
from korrect._core.version import FINGERPRINT_LENGTH, normalize_version
from korrect.errors import FilesystemError, SubprocessError

if TYPE_CHECKING:
    from korrect.config import ShimConfig

logger = logging.getLogger(__name__)


def compute_fingerprint(connection_config: str) -> str:
    """
    Fingerprint the contents of a connection config.
    
    connection_config may list several files separated by os.pathsep, as
    KUBECONFIG allows; their contents are hashed in order. A missing or
    unreadable file hashes as empty content, so every such config shares
    one cache bucket instead of failing.
    
    Args:
        connection_config: Path (or os.pathsep-separated paths) of the config
        
    Returns:
        Truncated hex sha256 digest
    """
    hasher = hashlib.sha256()
    for path in connection_config.split(os.pathsep):
        if not path:
            continue
        try:
            hasher.update(Path(path).expanduser().read_bytes())
        except OSError as e:
            logger.debug(f"Connection config {path} unreadable, hashing as empty: {e}")
    return hasher.hexdigest()[:FINGERPRINT_LENGTH]


def get_version_cache_file(config: "ShimConfig", connection_config: str) -> Path:
    """Path of the cache entry for a connection config."""
    return config.cache_dir / compute_fingerprint(connection_config)


def read_cached_version(cache_file: Path) -> Optional[str]:
    """
    Read a cached version, trusted verbatim.
    
    Returns:
        The trimmed cached version, or None when the entry is absent,
        unreadable or empty
    """
    try:
        version = cache_file.read_text().strip()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable version cache {cache_file}: {e}")
        return None
    return version or None


def write_cached_version(cache_file: Path, version: str) -> None:
    """
    Replace a cache entry wholesale.
    
    Raises:
        FilesystemError: If the cache directory or entry cannot be written
    """
    tmp_name = None
    try:
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=cache_file.parent, prefix=f".{cache_file.name}.", suffix=".tmp")
        with os.fdopen(fd, "w") as f:
            f.write(version)
        os.replace(tmp_name, cache_file)
        tmp_name = None
    except OSError as e:
        raise FilesystemError(f"Failed to write version cache {cache_file}: {e}") from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def query_server_version(
    binary_path: Path,
    kubeconfig: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[str]:
    """
    Ask a kubectl binary for the live cluster's version.
    
    The exit status is ignored: kubectl exits non-zero but still prints its
    client version when the server is unreachable.
    
    Args:
        binary_path: kubectl binary to run
        kubeconfig: Connection config override passed as KUBECONFIG
        timeout: Maximum runtime in seconds
        
    Returns:
        The raw serverVersion.gitVersion string, or None when the output is
        not JSON or carries no server version
        
    Raises:
        SubprocessError: If the binary cannot be launched or times out
    """
    cmd = [str(binary_path), "version", "-o", "json"]
    env = None
    if kubeconfig:
        env = {**os.environ, "KUBECONFIG": kubeconfig}
    
    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise SubprocessError(f"{binary_path} version timed out after {timeout}s") from e
    except OSError as e:
        raise SubprocessError(f"Failed to run {binary_path}: {e}") from e
    
    try:
        document = json.loads(result.stdout)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable version output from {binary_path}: {result.stderr!r}")
        return None
    
    server_version = document.get("serverVersion") if isinstance(document, dict) else None
    git_version = server_version.get("gitVersion") if isinstance(server_version, dict) else None
    if not isinstance(git_version, str):
        return None
    return git_version


def resolve_target_version(config: "ShimConfig", known_good: Optional[str] = None) -> str:
    """
    Determine the kubectl version the active cluster connection expects.
    
    Resolution order:
    1. Cached version for the connection config fingerprint
    2. serverVersion reported by the known-good kubectl (then cached)
    3. The known-good version itself, when the cluster reports no version
       (not cached, so the next run asks again)
    
    Args:
        config: Shim configuration
        known_good: Canonical known-good version, fetched when omitted
        
    Returns:
        Canonical target version
        
    Raises:
        MalformedVersionError: If the cluster reports a version with no vX.Y.Z
        SubprocessError: If the query binary cannot be run
        NetworkUnavailableError, UpstreamError, FilesystemError: From the
            release lookup and binary download
    """
    connection_config = config.connection_config
    cache_file = get_version_cache_file(config, connection_config)
    logger.debug(f"Version cache for {connection_config} is {cache_file}")
    
    cached = read_cached_version(cache_file)
    if cached is not None:
        logger.debug(f"Cache hit: {cached}")
        return cached
    
    logger.debug("Cache miss, querying cluster")
    if known_good is None:
        known_good = normalize_version(get_stable_version(config))
    query_binary = ensure_binary(config, known_good)
    
    raw_version = query_server_version(
        query_binary,
        kubeconfig=config.connection_config,
        timeout=config.query_timeout,
    )
    if raw_version is None:
        logger.warning(
            f"Unable to get version information from cluster, using {known_good}"
        )
        return known_good
    
    version = normalize_version(raw_version)
    write_cached_version(cache_file, version)
    logger.debug(f"Cached {version} in {cache_file}")
    return version


def clear_version_cache(config: "ShimConfig") -> int:
    """
    Remove every cached cluster version.
    
    Returns:
        Number of entries removed
        
    Raises:
        FilesystemError: If an entry cannot be removed
    """
    if not config.cache_dir.is_dir():
        return 0
    
    removed = 0
    for entry in config.cache_dir.iterdir():
        if not entry.is_file():
            continue
        try:
            entry.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove {entry}: {e}") from e
        removed += 1
    
    logger.info(f"Removed {removed} cached cluster versions from {config.cache_dir}")
    return removed
