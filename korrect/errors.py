"""
Exception types for korrect.

Provides typed exceptions for:
- Remote release/binary endpoint failures
- Version string parsing
- Local filesystem and subprocess failures
"""

from __future__ import annotations

from typing import Optional


class KorrectError(Exception):
    """Base exception for all korrect errors."""
    pass


# =============================================================================
# Network Errors
# =============================================================================


class NetworkUnavailableError(KorrectError):
    """
    Raised when a remote endpoint cannot be reached.
    
    This includes:
    - DNS resolution failures
    - Connection refused / reset
    - Request timeouts
    """
    pass


class UpstreamError(KorrectError):
    """
    Raised when a remote endpoint answers with a non-success HTTP status.
    
    Example:
        try:
            version = get_stable_version(config)
        except UpstreamError as e:
            logger.warning(f"Release endpoint returned {e.status_code}")
    """
    
    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)
    
    def __repr__(self) -> str:
        return f"UpstreamError(status_code={self.status_code!r}, url={self.url!r})"


# =============================================================================
# Version Errors
# =============================================================================


class MalformedVersionError(KorrectError):
    """
    Raised when a string contains no vMAJOR.MINOR.PATCH token.
    
    Callers must treat this as a hard failure. An empty or placeholder
    version is never substituted.
    """
    
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"No vMAJOR.MINOR.PATCH version found in {value!r}")


# =============================================================================
# Local Errors
# =============================================================================


class FilesystemError(KorrectError):
    """
    Raised when a local directory or file cannot be created or written.
    
    This includes:
    - Binary and cache directory creation
    - Binary download writes, permission changes and renames
    - Version cache writes
    """
    pass


class SubprocessError(KorrectError):
    """
    Raised when a kubectl binary cannot be launched.
    
    Unparseable query output is not an error: version resolution falls back
    to the known-good release instead.
    """
    pass


class ConfigError(KorrectError):
    """Raised when the environment holds an invalid configuration value."""
    pass
