"""
Orchestrates one work unit: tool provisioning, then one test-set run.
"""

import dataclasses
import logging
import shutil
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..models.installation import HostDescriptor, ToolInstallation
from ..models.work_unit import ProvisionOutcome, ProvisionState, WorkUnitResult, WorkUnitStatus
from .artifact_fetcher import ArtifactFetcher
from .errors import (
    ClientLibraryNotFound,
    ConfigurationError,
    FatalError,
    NoInstallationSelected,
    ScriptNotFound,
    ScriptStagingError,
    UnsupportedHost,
)
from .installers import SilentInstallExecutor
from .path_translator import PathTranslator
from .provisioner import QCClientKind, QTPAddinKind, ToolProvisioner
from .registry import InstallationRegistry
from .remote_runner import RemoteRunner, TestSetInvocation
from .result_collector import ResultCollector
from .state_checker import InstallationStateChecker


class TestSetOrchestrator:
    """Provisions the Quality Center tools on a host and runs one test set."""

    __test__ = False

    def __init__(self,
                 registry: InstallationRegistry,
                 host: HostDescriptor,
                 workspace: Path,
                 runner: RemoteRunner,
                 fetcher: Optional[ArtifactFetcher] = None,
                 executor: Optional[SilentInstallExecutor] = None,
                 translator: Optional[PathTranslator] = None,
                 checker: Optional[InstallationStateChecker] = None):
        """
        Initialize the orchestrator.

        Args:
            registry: Known installations
            host: Host the work unit runs on
            workspace: Build workspace, where the script is staged and the report written
            runner: Test-set runner
            fetcher: Installer fetcher shared by the provisioners
            executor: Silent installer executor shared by the provisioners
            translator: Path translator
            checker: Existing installation detector
        """
        self.logger = logging.getLogger(__name__)
        self.registry = registry
        self.host = host
        self.workspace = Path(workspace)
        self.runner = runner
        self.fetcher = fetcher or ArtifactFetcher()
        self.executor = executor or SilentInstallExecutor()
        self.translator = translator or PathTranslator()
        self.checker = checker or InstallationStateChecker()

    def run(self,
            invocation: TestSetInvocation,
            client_name: Optional[str],
            addin_name: Optional[str] = None,
            env: Optional[Dict[str, str]] = None,
            build_variables: Optional[Dict[str, str]] = None) -> WorkUnitResult:
        """
        Run the work unit.

        Args:
            invocation: Test set to run; its script is staged into the workspace
            client_name: Selected client installation
            addin_name: Selected add-in installation, optional
            env: Build environment, defaults to the host environment
            build_variables: Build variables for macro replacement

        Returns:
            WorkUnitResult. FAILED results carry the error message; the
            details have already been written to the build log.
        """
        env = dict(self.host.environment if env is None else env)
        result = WorkUnitResult(
            test_set=f"{invocation.folder}/{invocation.test_set}",
            host=self.host.name,
        )
        self.logger.info(f"Starting work unit {result.test_set} on {self.host.name}")

        try:
            client, outcome = self._provision_client(client_name, env)
            result.client_home = client.home
            result.client_state = outcome.state
            self._require_client_library(client)

            if addin_name:
                addin, addin_outcome = self._provision_addin(addin_name, env)
                result.addin_home = addin.home
                result.addin_state = addin_outcome.state

            report = self._run_test_set(invocation, env, build_variables)
            collected = ResultCollector(self.workspace).collect([report])
            result.report_paths = [r.path for r in collected]
        except UnsupportedHost as e:
            self.logger.warning(f"Skipping work unit: {e}")
            result.complete(WorkUnitStatus.SKIPPED, str(e))
            return result
        except (FatalError, ConfigurationError) as e:
            self.logger.error(f"Work unit aborted: {e}")
            result.complete(WorkUnitStatus.FAILED, str(e))
            return result

        result.complete(WorkUnitStatus.SUCCEEDED)
        self.logger.info(f"Work unit complete in {result.duration_seconds:.2f} seconds")
        return result

    def _provision_client(self, name: Optional[str],
                          env: Dict[str, str]) -> Tuple[ToolInstallation, ProvisionOutcome]:
        if not name:
            raise NoInstallationSelected("No Quality Center client installation has been selected")
        config = self.registry.find_client(name)
        installer = config.installer
        kind = QCClientKind(
            server_url=installer.server_url if installer else None,
            local_path=installer.local_path if installer else None,
        )
        return self._provision(config.to_installation(), kind, env, can_install=installer is not None)

    def _provision_addin(self, name: str,
                         env: Dict[str, str]) -> Tuple[ToolInstallation, ProvisionOutcome]:
        config = self.registry.find_addin(name)
        installer = config.installer
        kind = None
        if installer is not None:
            kind = QTPAddinKind(
                version=installer.version,
                local_path=installer.local_path,
                accept_license=installer.accept_license,
            )
        return self._provision(config.to_installation(), kind, env, can_install=kind is not None)

    def _provision(self, installation: ToolInstallation, kind, env: Dict[str, str],
                   can_install: bool) -> Tuple[ToolInstallation, ProvisionOutcome]:
        on_host = self.translator.for_host(installation, self.host)
        root = Path(on_host.home)

        if can_install:
            provisioner = ToolProvisioner(
                kind,
                fetcher=self.fetcher,
                executor=self.executor,
                checker=self.checker,
                host_name=self.host.name,
            )
            outcome = provisioner.provision(root)
        else:
            # Installed by hand: only locate it
            existing = self.checker.find_installation(root, kind.candidates) if kind else None
            location = existing if existing is not None else root
            outcome = ProvisionOutcome(state=ProvisionState.ALREADY_INSTALLED, location=str(location))
            if existing is None:
                self.logger.warning(
                    f"{installation.name} has no installer and no installation was found in {root}; "
                    f"using it as configured"
                )
            else:
                self.logger.info(f"{installation.name} has no installer, using {location}")

        on_host = on_host.with_home(outcome.location)
        return self.translator.for_environment(on_host, env), outcome

    def _require_client_library(self, client: ToolInstallation) -> Path:
        dll = Path(client.home) / QCClientKind.binary
        if not dll.is_file():
            message = f"Cannot find {QCClientKind.binary} in {client.home}"
            self.logger.error(message)
            raise ClientLibraryNotFound(message)
        return dll

    def _run_test_set(self, invocation: TestSetInvocation, env: Dict[str, str],
                      build_variables: Optional[Dict[str, str]]) -> str:
        source = Path(invocation.script)
        if not source.is_file():
            message = f"Cannot find the test set run script: {source}"
            self.logger.error(message)
            raise ScriptNotFound(message)

        staged = self.workspace / source.name
        try:
            self.workspace.mkdir(parents=True, exist_ok=True)
            # A script that already lives in the workspace is used in place and kept
            copied = staged.resolve() != source.resolve()
            if copied:
                shutil.copyfile(source, staged)
        except OSError as e:
            message = f"Could not stage {source} into {self.workspace}: {e}"
            self.logger.error(message)
            raise ScriptStagingError(message) from e

        try:
            return self.runner.run(dataclasses.replace(invocation, script=staged), env, build_variables)
        finally:
            if copied:
                try:
                    staged.unlink()
                except OSError as e:
                    self.logger.warning(f"Could not remove staged script {staged}: {e}")
