"""
Idempotent tool provisioning.

A provisioner checks whether its tool is already present on the host, and
otherwise fetches, silently installs and verifies it, then stamps the
installation with a marker file.
"""

import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Sequence

from ..models.installation import MARKER_FILE_NAME, ToolKind
from ..models.installer import InstallerSpec, SourceKind, resolve_addin_version
from ..models.work_unit import ProvisionOutcome, ProvisionState
from .artifact_fetcher import ArtifactFetcher
from .errors import FatalError, InstallRootError, LicenseNotAccepted, VerifyFailed
from .installers import InstallStrategy, MsiInstall, ScriptedInstall, SilentInstallExecutor, write_response_file
from .state_checker import Candidate, InstallationStateChecker


class QCClientKind:
    """Quality Center client: ``QCClient.msi`` providing ``OTAClient.dll``."""

    tool_kind = ToolKind.CLIENT
    display_name = "Quality Center client"
    binary = "OTAClient.dll"
    vendor_sub_path = os.path.join("MERCURY INTERACTIVE", "Quality Center")
    installer_file_name = "QCClient.msi"
    installer_path_on_server = "PlugIns/ClientSideInstallation/" + installer_file_name
    strategy: InstallStrategy = MsiInstall()

    def __init__(self, server_url: Optional[str] = None, local_path: Optional[str] = None):
        self.server_url = server_url or ""
        self.local_path = local_path or ""

    @property
    def candidates(self) -> List[Candidate]:
        # Installed by us, or by hand either at the root or in the vendor folder
        return [Candidate("", self.binary), Candidate(self.vendor_sub_path, self.binary)]

    def installed_location(self, root: Path) -> Path:
        return root / self.vendor_sub_path

    def installer_spec(self) -> InstallerSpec:
        if self.local_path:
            return InstallerSpec(source_kind=SourceKind.LOCAL_PATH, location_value=self.local_path)
        return InstallerSpec(
            source_kind=SourceKind.REMOTE_URL,
            location_value=self.server_url,
            relative_path=self.installer_path_on_server,
        )

    def artifact_name(self, spec: InstallerSpec) -> str:
        return self.installer_file_name

    def prepare(self, root: Path) -> List[Path]:
        return []


class QTPAddinKind:
    """QuickTest Professional add-in, providing ``bin/QTReport.exe``."""

    tool_kind = ToolKind.QTP_ADDIN
    display_name = "QTP add-in"
    binary = os.path.join("bin", "QTReport.exe")
    strategy: InstallStrategy = ScriptedInstall()

    def __init__(self, version: str, local_path: Optional[str] = None, accept_license: bool = False):
        self.version = resolve_addin_version(version)
        self.local_path = local_path or ""
        self.accept_license = accept_license

    @property
    def candidates(self) -> List[Candidate]:
        return [Candidate("", self.binary)]

    def installed_location(self, root: Path) -> Path:
        return root

    def installer_spec(self) -> InstallerSpec:
        if self.local_path:
            return InstallerSpec(
                source_kind=SourceKind.LOCAL_PATH,
                location_value=self.local_path,
                target_version=self.version.version,
            )
        return InstallerSpec(
            source_kind=SourceKind.REMOTE_URL,
            location_value=self.version.url,
            target_version=self.version.version,
        )

    def artifact_name(self, spec: InstallerSpec) -> str:
        return spec.artifact_name

    def prepare(self, root: Path) -> List[Path]:
        """Check the license is accepted and write the silent response file."""
        if not self.accept_license:
            raise LicenseNotAccepted(
                "The QTP add-in license agreement must be accepted before it can be installed"
            )
        return [write_response_file(root, key=self.version.key, path=str(root.absolute()))]


class ToolProvisioner:
    """
    Provisions one tool kind on one host.

    States: UNCHECKED -> CHECKING -> ALREADY_INSTALLED, or
    CHECKING -> FETCHING -> INSTALLING -> VERIFYING -> INSTALLED / VERIFY_FAILED.
    Any fatal error ends in FAILED. Nothing is retried.
    """

    def __init__(self,
                 kind,
                 fetcher: Optional[ArtifactFetcher] = None,
                 executor: Optional[SilentInstallExecutor] = None,
                 checker: Optional[InstallationStateChecker] = None,
                 host_name: str = "local"):
        """
        Initialize the provisioner.

        Args:
            kind: QCClientKind or QTPAddinKind
            fetcher: Installer fetcher
            executor: Silent installer executor
            checker: Existing installation detector
            host_name: Name of the host, for logs
        """
        self.logger = logging.getLogger(__name__)
        self.kind = kind
        self.fetcher = fetcher or ArtifactFetcher()
        self.executor = executor or SilentInstallExecutor()
        self.checker = checker or InstallationStateChecker()
        self.host_name = host_name
        self.state = ProvisionState.UNCHECKED

    def provision(self, root: Path) -> ProvisionOutcome:
        """
        Make sure the tool is installed under ``root``.

        Args:
            root: Installation root on this host

        Returns:
            ProvisionOutcome with ALREADY_INSTALLED or INSTALLED and the
            directory holding the tool

        Raises:
            FatalError: Any fetch, install or verification failure
        """
        root = Path(root)
        self._transition(ProvisionState.CHECKING)
        existing = self.checker.find_installation(root, self.kind.candidates)
        if existing is not None:
            self._transition(ProvisionState.ALREADY_INSTALLED)
            self.logger.info(f"{self.kind.display_name} already installed at {existing}")
            return ProvisionOutcome(state=self.state, location=str(existing))

        try:
            location = self._install(root)
        except VerifyFailed:
            self._transition(ProvisionState.VERIFY_FAILED)
            raise
        except FatalError as e:
            self._transition(ProvisionState.FAILED)
            self.logger.error(f"Provisioning of {self.kind.display_name} on {self.host_name} failed: {e}")
            raise

        self._write_marker(location)
        self._transition(ProvisionState.INSTALLED)
        return ProvisionOutcome(state=self.state, location=str(location))

    def _install(self, root: Path) -> Path:
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InstallRootError(f"Cannot create installation directory {root}: {e}") from e
        generated = self.kind.prepare(root)

        self._transition(ProvisionState.FETCHING)
        spec = self.kind.installer_spec()
        artifact = self.fetcher.fetch(spec, root / self.kind.artifact_name(spec))

        self._transition(ProvisionState.INSTALLING)
        self.executor.install(self.kind.strategy, artifact, root)

        self._discard([artifact] + generated)

        self._transition(ProvisionState.VERIFYING)
        location = self.kind.installed_location(root)
        if not self.checker.has_binary(location, self.kind.binary):
            message = (
                f"Could not find {self.kind.binary} in {location} after installing "
                f"{self.kind.display_name}"
            )
            self.logger.error(message)
            raise VerifyFailed(message)
        return location

    def _discard(self, paths: Sequence[Path]) -> None:
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                self.logger.warning(f"Could not delete {path}: {e}")

    def _write_marker(self, location: Path) -> None:
        marker = location / MARKER_FILE_NAME
        try:
            marker.touch()
            now = time.time()
            os.utime(marker, (now, now))
        except OSError as e:
            self.logger.warning(f"Could not write installation marker {marker}: {e}")

    def _transition(self, state: ProvisionState) -> None:
        self.logger.debug(f"{self.kind.display_name}@{self.host_name}: {self.state.value} -> {state.value}")
        self.state = state
