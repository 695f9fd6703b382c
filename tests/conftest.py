"""Shared fixtures."""

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from qc_automation.models.execution import ExecutionRequest, ExecutionResult
from qc_automation.models.installation import HostDescriptor, HostKind, OSFamily


class FakeLauncher:
    """Records requests instead of starting processes."""

    def __init__(self, exit_code: int = 0,
                 side_effect: Optional[Callable[[ExecutionRequest], None]] = None):
        self.exit_code = exit_code
        self.side_effect = side_effect
        self.requests: List[ExecutionRequest] = []

    def run(self, request: ExecutionRequest) -> ExecutionResult:
        self.requests.append(request)
        if self.side_effect is not None:
            self.side_effect(request)
        return ExecutionResult(exit_code=self.exit_code)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    """A launcher whose processes all succeed."""
    return FakeLauncher()


@pytest.fixture
def windows_host(tmp_path: Path) -> HostDescriptor:
    """A Windows host rooted in a temporary directory."""
    return HostDescriptor(
        name="win-agent",
        kind=HostKind.AGENT,
        os_family=OSFamily.WINDOWS,
        root=str(tmp_path / "host"),
        environment={"TOOLS": str(tmp_path / "tools")},
    )


@pytest.fixture
def posix_host(tmp_path: Path) -> HostDescriptor:
    """A Linux host."""
    return HostDescriptor(
        name="linux-agent",
        kind=HostKind.AGENT,
        os_family=OSFamily.POSIX,
        root=str(tmp_path / "host"),
    )


def write_utf16(path: Path, text: str) -> Path:
    """Write ``text`` as a UTF-16 file with BOM, as Windows tools do."""
    path.write_bytes(text.encode("utf-16"))
    return path
