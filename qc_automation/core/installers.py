"""
Silent installer strategies and their executor.

Two installer forms are supported: Windows Installer packages (MSI) run
through ``cmd.exe``, and InstallShield setups driven by a ``setup.iss``
response file placed next to the installer.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Optional, Union

from ..models.execution import ExecutionRequest, LogEncoding, ReportLogReference
from .errors import InstallProcessFailed, ResponseFileError
from .log_recovery import LogRecovery
from .process_runner import ProcessLauncher


SCRIPTED_SETUP_LOG = "setup.log"
RESPONSE_FILE_NAME = "setup.iss"
RESPONSE_FILE_ENCODING = "iso-8859-1"

# InstallShield silent response file. ${key} is the product key of the
# add-in release, ${path} the installation directory.
RESPONSE_FILE_TEMPLATE = """[InstallShield Silent]
Version=v7.00
File=Response File
[File Transfer]
OverwrittenReadOnly=NoToAll
[{${key}}-DlgOrder]
Dlg0={${key}}-SdWelcome-0
Count=4
Dlg1={${key}}-SdLicense-0
Dlg2={${key}}-SdAskDestPath-0
Dlg3={${key}}-SdFinish-0
[{${key}}-SdWelcome-0]
Result=1
[{${key}}-SdLicense-0]
Result=1
[{${key}}-SdAskDestPath-0]
szDir=${path}
Result=1
[Application]
Name=Quality Center Connectivity Add-in
Version=1.0
Company=Mercury Interactive
Lang=0009
[{${key}}-SdFinish-0]
Result=1
bOpt1=0
bOpt2=0
"""


@dataclass(frozen=True)
class MsiInstall:
    """``msiexec``-style package installed through ``cmd.exe /C``."""

    def build_request(self, installer: Path, target_dir: Path,
                      timeout_seconds: Optional[int] = None) -> ExecutionRequest:
        log_file = self.log_path(installer)
        inner = (
            f'"{installer}" /qn /norestart TARGETDIR="{target_dir}" /l "{log_file}"'
        )
        return ExecutionRequest(
            command=("cmd.exe", "/C", f'"{inner}"'),
            working_directory=str(target_dir),
            timeout_seconds=timeout_seconds,
            raw_command_line=True,
        )

    def log_path(self, installer: Path) -> Path:
        return installer.with_name(installer.name + ".install.log")

    def failure_log(self, installer: Path) -> ReportLogReference:
        # msiexec writes its log in UTF-16 whatever the host locale
        return ReportLogReference(path=str(self.log_path(installer)), declared_encoding=LogEncoding.UTF16)


@dataclass(frozen=True)
class ScriptedInstall:
    """InstallShield setup run silently with a response file."""

    def build_request(self, installer: Path, target_dir: Path,
                      timeout_seconds: Optional[int] = None) -> ExecutionRequest:
        return ExecutionRequest(
            command=(str(installer), "/S", "/v/qn"),
            working_directory=str(target_dir),
            timeout_seconds=timeout_seconds,
        )

    def failure_log(self, installer: Path) -> ReportLogReference:
        return ReportLogReference(
            path=str(installer.parent / SCRIPTED_SETUP_LOG),
            declared_encoding=LogEncoding.UTF8,
        )


InstallStrategy = Union[MsiInstall, ScriptedInstall]


def render_response_file(key: str, path: str) -> str:
    """
    Render the InstallShield response file for one add-in release.

    Raises:
        ResponseFileError: If the template cannot be rendered
    """
    try:
        return Template(RESPONSE_FILE_TEMPLATE).substitute(key=key, path=path)
    except (KeyError, ValueError) as e:
        raise ResponseFileError(f"Could not generate the silent install script: {e}") from e


def write_response_file(directory: Path, key: str, path: str) -> Path:
    """Write ``setup.iss`` into ``directory`` and return its path."""
    content = render_response_file(key, path)
    target = Path(directory) / RESPONSE_FILE_NAME
    try:
        target.write_text(content, encoding=RESPONSE_FILE_ENCODING)
    except (OSError, UnicodeEncodeError) as e:
        raise ResponseFileError(f"Could not write {target}: {e}") from e
    return target


class SilentInstallExecutor:
    """Runs a silent installer and recovers its log when it fails."""

    def __init__(self,
                 launcher: Optional[ProcessLauncher] = None,
                 log_recovery: Optional[LogRecovery] = None,
                 timeout_seconds: Optional[int] = None):
        """
        Initialize the executor.

        Args:
            launcher: Process launcher
            log_recovery: Used to echo the installer log on failure
            timeout_seconds: Optional hard limit for one installer run
        """
        self.logger = logging.getLogger(__name__)
        self.launcher = launcher or ProcessLauncher()
        self.log_recovery = log_recovery or LogRecovery()
        self.timeout_seconds = timeout_seconds

    def install(self, strategy: InstallStrategy, installer: Path, target_dir: Path) -> Path:
        """
        Run ``installer`` silently into ``target_dir``.

        Args:
            strategy: Installer form
            installer: Installer file on the target host
            target_dir: Installation directory, also the working directory

        Returns:
            The installation directory

        Raises:
            InstallProcessFailed: If the installer exits with a non-zero code
        """
        installer = Path(installer).absolute()
        target_dir = Path(target_dir).absolute()
        self.logger.info(f"Installing {installer.name}")

        request = strategy.build_request(installer, target_dir, self.timeout_seconds)
        result = self.launcher.run(request)

        if not result.succeeded:
            self.logger.error(
                f"Installation of {installer.name} aborted (exit code {result.exit_code}); installer log follows"
            )
            self.log_recovery.recover(strategy.failure_log(installer))
            raise InstallProcessFailed(
                f"Installation of {installer.name} failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
            )

        self.logger.info(f"{installer.name} installed successfully")
        return target_dir
