"""
Core modules for the Quality Center automation system.
"""

from .artifact_fetcher import ArtifactFetcher
from .installers import MsiInstall, ScriptedInstall, SilentInstallExecutor
from .log_recovery import LogRecovery
from .orchestrator import TestSetOrchestrator
from .path_translator import PathTranslator
from .process_runner import ProcessLauncher
from .provisioner import QCClientKind, QTPAddinKind, ToolProvisioner
from .registry import InstallationRegistry, JsonInstallationStore
from .remote_runner import RemoteRunner, TestSetInvocation
from .result_collector import ResultCollector
from .state_checker import InstallationStateChecker

__all__ = [
    "ArtifactFetcher",
    "MsiInstall",
    "ScriptedInstall",
    "SilentInstallExecutor",
    "LogRecovery",
    "TestSetOrchestrator",
    "PathTranslator",
    "ProcessLauncher",
    "QCClientKind",
    "QTPAddinKind",
    "ToolProvisioner",
    "InstallationRegistry",
    "JsonInstallationStore",
    "RemoteRunner",
    "TestSetInvocation",
    "ResultCollector",
    "InstallationStateChecker",
]
