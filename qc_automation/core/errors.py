"""
Error taxonomy for provisioning and test-set execution.

``FatalError`` subclasses abort the current work unit. ``UnsupportedHost`` is
not fatal: it tells the caller that a tool does not apply to a host.
"""

from typing import Optional


class QCAutomationError(Exception):
    """Base class for all errors raised by this package."""


class UnsupportedHost(QCAutomationError):
    """The tool family cannot run on the target host (non-Windows)."""

    def __init__(self, installation: str, host: str, os_family: str):
        self.installation = installation
        self.host = host
        self.os_family = os_family
        super().__init__(
            f"{installation} is not available on host {host} ({os_family}); "
            f"only Windows hosts are supported"
        )


class ConfigurationError(QCAutomationError):
    """Invalid or incomplete configuration, detected before any work starts."""


class UnsupportedVersion(ConfigurationError):
    """An add-in version that is not in the supported version table."""


class UnknownInstallation(ConfigurationError):
    """A selected installation name that is not registered."""


class NoInstallationSelected(ConfigurationError):
    """No client installation has been selected for the work unit."""


class FatalError(QCAutomationError):
    """Aborts the current work unit. Never retried."""


class ArtifactNotFound(FatalError):
    """The configured local installer does not exist."""


class ArtifactIsDirectory(FatalError):
    """The configured local installer is a directory, not a file."""


class NetworkError(FatalError):
    """The installer could not be downloaded."""


class LocalCopyError(FatalError):
    """The local installer could not be copied to the target host."""


class InstallRootError(FatalError):
    """The installation root directory could not be created."""


class LicenseNotAccepted(FatalError):
    """The add-in license agreement has not been accepted in configuration."""


class ResponseFileError(FatalError):
    """The silent-install response file could not be generated."""


class InstallProcessFailed(FatalError):
    """The silent installer exited with a non-zero code."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class VerifyFailed(FatalError):
    """The installer reported success but the expected binary is absent."""


class ClientLibraryNotFound(FatalError):
    """OTAClient.dll cannot be found in the resolved client installation."""


class ScriptNotFound(FatalError):
    """The test-set run script is missing."""


class ScriptStagingError(FatalError):
    """The test-set run script could not be staged into the workspace."""


class TestSetSchedulerFailed(FatalError):
    """The scripted test-set run exited with a non-zero code."""

    __test__ = False

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class ReportNotGenerated(FatalError):
    """The run succeeded but no report file was produced."""
