"""
Type definitions for korrect.

Defines the dataclasses shared across the package:
- Version: a fully resolved (major, minor, patch) triple
- InstalledBinary: a kubectl binary present in the local binary directory
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from korrect.errors import MalformedVersionError

# First vX.Y.Z occurrence anywhere in the string
VERSION_PATTERN = re.compile(r"v(\d+)\.(\d+)\.(\d+)")


@dataclass(frozen=True, order=True)
class Version:
    """
    A kubectl/Kubernetes release version.
    
    Identity is the numeric triple, never the raw string it was parsed from.
    Instances only come out of a successful parse; there is no partial
    Version.
    
    Attributes:
        major: Major release number
        minor: Minor release number
        patch: Patch release number
    """
    major: int
    minor: int
    patch: int
    
    @classmethod
    def parse(cls, value: str) -> "Version":
        """
        Extract the first vX.Y.Z token from an arbitrary string.
        
        Args:
            value: Raw string, e.g. "clusterapi-v1.2.3-alpha+build"
            
        Returns:
            Parsed Version
            
        Raises:
            MalformedVersionError: If no vX.Y.Z token is present
        """
        match = VERSION_PATTERN.search(value)
        if not match:
            raise MalformedVersionError(value)
        return cls(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    
    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class InstalledBinary:
    """
    A kubectl binary installed in the local binary directory.
    
    If the path exists it is complete and executable; downloads are only
    renamed into place once fully written.
    """
    version: Version
    path: Path
