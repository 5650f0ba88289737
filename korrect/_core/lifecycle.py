"""
Binary lifecycle management for korrect.

Handles:
- Platform detection
- Binary download from the release host
- The local binary cache (one kubectl-{version} file per version)
"""

from __future__ import annotations

import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, List, Mapping, Optional, Tuple

import requests
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from korrect._core.release import http_get
from korrect._core.version import BINARY_NAME, get_download_url
from korrect.errors import (
    FilesystemError,
    MalformedVersionError,
    NetworkUnavailableError,
)
from korrect.types import InstalledBinary, Version

if TYPE_CHECKING:
    from korrect.config import ShimConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
EXECUTABLE_MODE = 0o755

_OS_NAMES = {
    "darwin": "darwin",
    "windows": "windows",
}

_ARCH_NAMES = {
    "x86": "386",
    "i386": "386",
    "i686": "386",
    "x86_64": "amd64",
    "amd64": "amd64",
    "arm": "arm",
    "armv7l": "arm",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def get_platform_info() -> Tuple[str, str]:
    """
    Determine the vendor's OS and architecture tokens for this host.
    
    Unknown operating systems map to "linux". Unknown architectures pass
    through unchanged rather than failing.
    
    Returns:
        Tuple of (os_name, arch_name)
    """
    system = platform.system()
    machine = platform.machine()
    
    os_name = _OS_NAMES.get(system.lower(), "linux")
    arch_name = _ARCH_NAMES.get(machine.lower(), machine)
    
    return os_name, arch_name


def get_binary_path(config: "ShimConfig", version: str) -> Path:
    """
    Get the install path of the binary for a specific version.
    
    Args:
        config: Shim configuration (bin_dir, os_name)
        version: Canonical version, e.g. "v1.31.3"
        
    Returns:
        Path to the binary (which may not exist yet)
    """
    ext = ".exe" if config.os_name == "windows" else ""
    return config.bin_dir / f"{BINARY_NAME}-{version}{ext}"


def _content_length(headers: Mapping[str, str]) -> Optional[int]:
    try:
        return int(headers.get("content-length"))
    except (TypeError, ValueError):
        return None


def _progress(show: bool) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=Console(stderr=True),
        transient=True,
        disable=not show,
    )


def download_file(
    url: str,
    target_path: Path,
    timeout: float,
    show_progress: bool = True,
) -> Path:
    """
    Stream a URL to target_path and make the result executable.
    
    The body is written to a temporary file next to target_path and renamed
    into place only once complete, so target_path is either absent or a
    whole executable.
    
    Args:
        url: URL to download
        target_path: Final location of the file
        timeout: Network timeout in seconds
        show_progress: Render a progress bar on stderr
        
    Returns:
        target_path
        
    Raises:
        NetworkUnavailableError: If the host is unreachable or the transfer drops
        UpstreamError: On a non-success HTTP status
        FilesystemError: If the directory or file cannot be written
    """
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create {target_path.parent}: {e}") from e
    
    response = http_get(url, timeout=timeout, stream=True)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=target_path.parent,
            prefix=f".{target_path.name}.",
            suffix=".part",
        )
        total = _content_length(response.headers)
        downloaded = 0
        
        with os.fdopen(fd, "wb") as f, _progress(show_progress) as progress:
            task = progress.add_task(f"Downloading {target_path.name}", total=total)
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)
                progress.update(task, completed=downloaded)
        
        os.chmod(tmp_name, EXECUTABLE_MODE)
        os.replace(tmp_name, target_path)
        tmp_name = None
        
    except requests.RequestException as e:
        raise NetworkUnavailableError(f"Download of {url} interrupted: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Failed to install {target_path}: {e}") from e
    finally:
        response.close()
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    
    logger.debug(f"Downloaded {downloaded} bytes from {url} to {target_path}")
    return target_path


def ensure_binary(config: "ShimConfig", version: str) -> Path:
    """
    Ensure the kubectl binary for a version is installed locally.
    
    An existing file at the install path is trusted as-is; otherwise the
    binary is downloaded for the configured platform.
    
    Args:
        config: Shim configuration
        version: Canonical version, e.g. "v1.31.3"
        
    Returns:
        Path to the installed binary
        
    Raises:
        NetworkUnavailableError: If the release host is unreachable
        UpstreamError: If the release host has no such binary
        FilesystemError: If the binary cannot be written
    """
    target_path = get_binary_path(config, version)
    
    if target_path.exists():
        logger.debug(f"Binary already exists at {target_path}")
        return target_path
    
    url = get_download_url(config.base_url, version, config.os_name, config.arch)
    logger.info(f"Downloading kubectl {version} for {config.os_name}/{config.arch}...")
    logger.debug(f"Download URL: {url}")
    
    download_file(url, target_path, timeout=config.http_timeout, show_progress=config.show_progress)
    
    logger.info(f"Successfully installed kubectl {version}")
    return target_path


def list_installed(config: "ShimConfig") -> List[InstalledBinary]:
    """
    List the kubectl binaries present in the binary directory.
    
    Files whose names carry no version (the shim itself, symlinks to it)
    are skipped.
    
    Args:
        config: Shim configuration (bin_dir)
        
    Returns:
        Installed binaries sorted by version
    """
    if not config.bin_dir.is_dir():
        return []
    
    installed = []
    for path in config.bin_dir.glob(f"{BINARY_NAME}-*"):
        if not path.is_file():
            continue
        try:
            version = Version.parse(path.name)
        except MalformedVersionError:
            continue
        installed.append(InstalledBinary(version=version, path=path))
    
    return sorted(installed, key=lambda b: b.version)
