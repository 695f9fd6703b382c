"""
Process execution models.
"""

from enum import Enum
from typing import Optional, Dict, FrozenSet, Tuple
from pydantic import BaseModel, Field


MASK_PLACEHOLDER = "********"


class LogEncoding(str, Enum):
    """Declared encoding of a log file written by an external program."""
    UTF16 = "utf-16"
    UTF8 = "utf-8"


class ExecutionRequest(BaseModel):
    """A command to run, with the positions that must never be echoed."""
    command: Tuple[str, ...] = Field(..., description="Ordered argument tokens")
    masked_indices: FrozenSet[int] = Field(default_factory=frozenset)
    working_directory: str = Field(..., description="Process working directory")
    timeout_seconds: Optional[float] = Field(None, description="Kill the process after this delay")
    environment: Optional[Dict[str, str]] = Field(None, description="Process environment, inherited if unset")
    raw_command_line: bool = Field(
        default=False,
        description="Hand the tokens to the OS joined verbatim instead of quoted one by one"
    )

    class Config:
        frozen = True

    def display(self) -> str:
        """Render the command for logs; masked tokens are replaced."""
        tokens = []
        for index, token in enumerate(self.command):
            if index in self.masked_indices:
                tokens.append(MASK_PLACEHOLDER)
            elif self.raw_command_line:
                tokens.append(token)
            else:
                tokens.append(_quote(token))
        return " ".join(tokens)

    def command_line(self) -> str:
        """Unmasked command line handed to the OS when raw_command_line is set."""
        return " ".join(self.command)


def _quote(token: str) -> str:
    if token == "":
        return '""'
    if any(ch.isspace() for ch in token) and not (token.startswith('"') and token.endswith('"')):
        return f'"{token}"'
    return token


class ExecutionResult(BaseModel):
    """Outcome of one ExecutionRequest."""
    exit_code: int
    stdout_already_streamed: bool = True

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ReportLogReference(BaseModel):
    """A log or report file produced by an external program."""
    path: str
    declared_encoding: LogEncoding = LogEncoding.UTF16

    class Config:
        frozen = True
