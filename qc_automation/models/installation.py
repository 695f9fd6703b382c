"""
Tool installation and host models.
"""

import os
import platform
import re
from enum import Enum
from pathlib import Path
from typing import Optional, Dict
from pydantic import BaseModel, Field


MARKER_FILE_NAME = ".installedByHudson"


class ToolKind(str, Enum):
    """Kinds of tools this system provisions."""
    CLIENT = "client"
    QTP_ADDIN = "qtp_addin"


class HostKind(str, Enum):
    """Role of the host a work unit executes on."""
    CONTROLLER = "controller"
    AGENT = "agent"


class OSFamily(str, Enum):
    """Operating system family of a host."""
    WINDOWS = "windows"
    POSIX = "posix"

    @classmethod
    def detect(cls) -> "OSFamily":
        """Detect the family of the running interpreter's host."""
        if os.name == "nt" or platform.system().lower() == "windows":
            return cls.WINDOWS
        return cls.POSIX


class ToolInstallation(BaseModel):
    """A named tool installation. Specializations produce new instances."""
    name: str = Field(..., description="Installation name, unique per kind")
    home: str = Field(default="", description="Installation root, may contain $VARS")
    kind: ToolKind = Field(default=ToolKind.CLIENT, description="Tool kind")

    class Config:
        frozen = True

    def with_home(self, home: str) -> "ToolInstallation":
        """Return a copy of this installation rooted at ``home``."""
        return ToolInstallation(name=self.name, home=home, kind=self.kind)

    @property
    def sanitized_name(self) -> str:
        """Name usable as a directory name."""
        return re.sub(r"[^A-Za-z0-9_.-]", "_", self.name)


class HostDescriptor(BaseModel):
    """Describes the host a tool is provisioned on."""
    name: str = Field(default="controller", description="Host name")
    kind: HostKind = Field(default=HostKind.CONTROLLER)
    os_family: OSFamily = Field(default_factory=OSFamily.detect)
    root: str = Field(default=".", description="Host root directory for default tool homes")
    tool_locations: Dict[str, str] = Field(
        default_factory=dict,
        description="Per-host home overrides keyed by installation name"
    )
    environment: Dict[str, str] = Field(default_factory=dict)

    class Config:
        frozen = True

    @property
    def is_windows(self) -> bool:
        return self.os_family == OSFamily.WINDOWS

    @classmethod
    def local(cls, name: Optional[str] = None, root: Optional[Path] = None) -> "HostDescriptor":
        """Describe the machine this process runs on."""
        return cls(
            name=name or platform.node() or "controller",
            kind=HostKind.CONTROLLER,
            os_family=OSFamily.detect(),
            root=str(root or Path.cwd()),
            environment=dict(os.environ),
        )
