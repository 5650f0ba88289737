"""
Release pointer lookup for korrect.

The known-good version is fetched fresh on every run; it is never cached
locally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import requests

from korrect._core.version import get_stable_url
from korrect.errors import NetworkUnavailableError, UpstreamError

if TYPE_CHECKING:
    from korrect.config import ShimConfig

logger = logging.getLogger(__name__)


def http_get(url: str, timeout: float, stream: bool = False) -> requests.Response:
    """
    Issue a GET request and map failures onto korrect errors.
    
    Args:
        url: URL to fetch
        timeout: Connect/read timeout in seconds
        stream: Defer downloading the body (for large binaries)
        
    Returns:
        A successful response
        
    Raises:
        NetworkUnavailableError: On connection, DNS or timeout failures
        UpstreamError: On a non-success HTTP status
    """
    try:
        response = requests.get(url, stream=stream, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkUnavailableError(f"Failed to reach {url}: {e}") from e
    
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        status_code = response.status_code
        response.close()
        raise UpstreamError(
            f"GET {url} returned HTTP {status_code}",
            status_code=status_code,
            url=url,
        ) from e
    
    return response


def get_stable_version(config: "ShimConfig") -> str:
    """
    Fetch the publisher's current known-good kubectl version.
    
    The body is returned trimmed but otherwise untouched; callers normalize
    it and treat unexpected content as MalformedVersionError.
    
    Args:
        config: Shim configuration (base_url, http_timeout)
        
    Returns:
        Raw version string, e.g. "v1.31.3"
        
    Raises:
        NetworkUnavailableError: If the release host is unreachable
        UpstreamError: If the release host answers with an error status
    """
    url = get_stable_url(config.base_url)
    logger.debug(f"Fetching known-good version from {url}")
    
    response = http_get(url, timeout=config.http_timeout)
    try:
        version = response.text.strip()
    finally:
        response.close()
    
    logger.debug(f"Known-good version is {version!r}")
    return version
