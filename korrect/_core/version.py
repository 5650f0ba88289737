"""
Version constants and release URL construction for korrect.

Remote layout (compatible with the public Kubernetes distribution):
- GET {base_url}/release/stable.txt                          -> known-good version
- GET {base_url}/release/{version}/bin/{os}/{arch}/kubectl   -> binary
"""

from __future__ import annotations

from korrect.types import Version

# korrect version (user-facing, independent semver)
KORRECT_VERSION = "0.1.0"

# Upstream release host
DEFAULT_BASE_URL = "https://dl.k8s.io"
STABLE_PATH = "release/stable.txt"
BINARY_NAME = "kubectl"

# Hex digits of the sha256 kept for a connection fingerprint
FINGERPRINT_LENGTH = 5


def parse_version(version: str) -> Version:
    """
    Parse a raw version string into a Version.
    
    Args:
        version: String containing a vX.Y.Z token anywhere
        
    Returns:
        Version triple
        
    Raises:
        MalformedVersionError: If no vX.Y.Z token is present
    """
    return Version.parse(version)


def normalize_version(version: str) -> str:
    """
    Reduce an arbitrary version string to its canonical "vX.Y.Z" form.
    
    Server responses may carry build metadata or prefixes, e.g.
    "v1.30.5+build.99" or "eks-v1.29.1-eks-1234". The first vX.Y.Z
    occurrence wins.
    
    Args:
        version: Raw version string
        
    Returns:
        Canonical "vX.Y.Z" string
        
    Raises:
        MalformedVersionError: If no vX.Y.Z token is present
    """
    return str(Version.parse(version))


def binary_filename(os_name: str) -> str:
    """Name of the kubectl artifact for an OS token."""
    ext = ".exe" if os_name == "windows" else ""
    return f"{BINARY_NAME}{ext}"


def get_stable_url(base_url: str) -> str:
    """URL of the known-good (stable) version pointer."""
    return f"{base_url.rstrip('/')}/{STABLE_PATH}"


def get_download_url(base_url: str, version: str, os_name: str, arch_name: str) -> str:
    """
    Get the download URL for a specific kubectl version and platform.
    
    Args:
        base_url: Release host, e.g. "https://dl.k8s.io"
        version: Canonical version (e.g., "v1.31.3")
        os_name: OS token (darwin, linux, windows)
        arch_name: Architecture token (amd64, arm64, 386, arm, ...)
        
    Returns:
        Binary download URL
    """
    return (
        f"{base_url.rstrip('/')}/release/{version}/bin/"
        f"{os_name}/{arch_name}/{binary_filename(os_name)}"
    )
