"""
Installer payload retrieval from a local path or a server URL.
"""

import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable, Optional

from ..models.installer import InstallerSpec, SourceKind
from .errors import ArtifactIsDirectory, ArtifactNotFound, LocalCopyError, NetworkError


CHUNK_SIZE = 64 * 1024


def validate_local_installer(path: str) -> Path:
    """
    Check that a local installer path points at a regular file.

    Raises:
        ArtifactNotFound: If the path does not exist
        ArtifactIsDirectory: If the path is a directory
    """
    source = Path(path)
    if not source.exists():
        raise ArtifactNotFound(f"Cannot find the installer: {path}")
    if source.is_dir():
        raise ArtifactIsDirectory(f"The installer path must be a file, not a directory: {path}")
    return source


class ArtifactFetcher:
    """Copies or downloads an installer to a destination file."""

    def __init__(self,
                 download_timeout: Optional[float] = None,
                 urlopen: Optional[Callable] = None):
        """
        Initialize the fetcher.

        Args:
            download_timeout: Socket timeout for downloads, in seconds
            urlopen: Replacement for urllib.request.urlopen
        """
        self.logger = logging.getLogger(__name__)
        self.download_timeout = download_timeout
        self._urlopen = urlopen or urllib.request.urlopen

    def fetch(self, spec: InstallerSpec, destination: Path) -> Path:
        """
        Place the installer described by ``spec`` at ``destination``.

        Args:
            spec: Installer source
            destination: File to create

        Returns:
            The destination path

        Raises:
            ArtifactNotFound, ArtifactIsDirectory, LocalCopyError, NetworkError
        """
        destination = Path(destination)
        if spec.source_kind == SourceKind.LOCAL_PATH:
            return self._copy_local(spec.location_value, destination)
        return self._download(spec.download_url, destination)

    def _copy_local(self, source_path: str, destination: Path) -> Path:
        source = validate_local_installer(source_path)
        self.logger.info(f"Copying installer from {source_path}")
        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            self._discard(destination)
            raise LocalCopyError(f"Failed to copy {source_path} to {destination}: {e}") from e
        return destination

    def _download(self, url: str, destination: Path) -> Path:
        self.logger.info(f"Downloading installer from {url}")
        try:
            kwargs = {"timeout": self.download_timeout} if self.download_timeout else {}
            with self._urlopen(url, **kwargs) as response, open(destination, "wb") as out:
                shutil.copyfileobj(response, out, CHUNK_SIZE)
        except (urllib.error.URLError, OSError, ValueError) as e:
            self._discard(destination)
            raise NetworkError(f"Failed to download {url}: {e}") from e
        self.logger.info(f"Downloaded {destination.stat().st_size} bytes to {destination}")
        return destination

    def _discard(self, destination: Path) -> None:
        try:
            destination.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove partial file {destination}: {e}")
