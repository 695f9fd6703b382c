"""
Detection of existing tool installations.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..models.installation import MARKER_FILE_NAME


@dataclass(frozen=True)
class Candidate:
    """A location to inspect and the binary expected there."""
    sub_path: str
    binary: str


class InstallationStateChecker:
    """Finds where a tool is already installed, if anywhere. Never writes."""

    def __init__(self, marker_name: str = MARKER_FILE_NAME):
        self.logger = logging.getLogger(__name__)
        self.marker_name = marker_name

    def is_installed_at(self, location: Path, binary: str) -> bool:
        """True if the marker or the expected binary exists at ``location``."""
        return (location / self.marker_name).exists() or self.has_binary(location, binary)

    def has_binary(self, location: Path, binary: str) -> bool:
        """True if the expected binary exists at ``location``."""
        return (location / binary).is_file()

    def find_installation(self, root: Path, candidates: Iterable[Candidate]) -> Optional[Path]:
        """
        Return the first candidate location holding an installation.

        Args:
            root: Installation root
            candidates: Locations relative to root, in order of preference

        Returns:
            The matching location, or None if the tool is not installed
        """
        for candidate in candidates:
            location = Path(root) / candidate.sub_path if candidate.sub_path else Path(root)
            if self.is_installed_at(location, candidate.binary):
                self.logger.debug(f"Found installation at {location}")
                return location
        return None
