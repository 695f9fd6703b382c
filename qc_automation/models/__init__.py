"""
Data models for the Quality Center automation system.
"""

from .installation import (
    MARKER_FILE_NAME,
    HostDescriptor,
    HostKind,
    OSFamily,
    ToolInstallation,
    ToolKind,
)
from .installer import ADDIN_VERSIONS, AddinVersion, InstallerSpec, SourceKind, resolve_addin_version
from .execution import (
    MASK_PLACEHOLDER,
    ExecutionRequest,
    ExecutionResult,
    LogEncoding,
    ReportLogReference,
)
from .work_unit import ProvisionOutcome, ProvisionState, WorkUnitResult, WorkUnitStatus

__all__ = [
    "MARKER_FILE_NAME",
    "HostDescriptor",
    "HostKind",
    "OSFamily",
    "ToolInstallation",
    "ToolKind",
    "ADDIN_VERSIONS",
    "AddinVersion",
    "InstallerSpec",
    "SourceKind",
    "resolve_addin_version",
    "MASK_PLACEHOLDER",
    "ExecutionRequest",
    "ExecutionResult",
    "LogEncoding",
    "ReportLogReference",
    "ProvisionOutcome",
    "ProvisionState",
    "WorkUnitResult",
    "WorkUnitStatus",
]
