"""
Provisioning and work-unit result models.
"""

from enum import Enum
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class ProvisionState(str, Enum):
    """States of the tool provisioning state machine."""
    UNCHECKED = "unchecked"
    CHECKING = "checking"
    ALREADY_INSTALLED = "already_installed"
    FETCHING = "fetching"
    INSTALLING = "installing"
    VERIFYING = "verifying"
    INSTALLED = "installed"
    VERIFY_FAILED = "verify_failed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ProvisionState.ALREADY_INSTALLED,
            ProvisionState.INSTALLED,
            ProvisionState.VERIFY_FAILED,
            ProvisionState.FAILED,
        )


class ProvisionOutcome(BaseModel):
    """Terminal result of one provisioning pass."""
    state: ProvisionState
    location: str = Field(..., description="Directory holding the installed tool")


class WorkUnitStatus(str, Enum):
    """Overall status of one work unit."""
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


class WorkUnitResult(BaseModel):
    """Result of one provisioning pass plus one test-set run."""
    test_set: str = Field(..., description="Test set folder and name")
    host: str = Field(..., description="Host the work unit ran on")
    status: WorkUnitStatus = Field(default=WorkUnitStatus.FAILED)

    client_home: Optional[str] = None
    client_state: Optional[ProvisionState] = None
    addin_home: Optional[str] = None
    addin_state: Optional[ProvisionState] = None
    report_paths: List[str] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Error message if failed or skipped")

    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def complete(self, status: WorkUnitStatus, error: Optional[str] = None) -> None:
        """Mark the work unit as complete."""
        self.status = status
        if error:
            self.error = error
        self.completed_at = datetime.utcnow()
        if self.started_at:
            self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.status == WorkUnitStatus.SUCCEEDED
