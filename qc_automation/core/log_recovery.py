"""
Echoing of installer and run logs into the build log after a failure.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.execution import ReportLogReference
from ..utils.logging import get_build_logger


def read_log(reference: ReportLogReference) -> str:
    """
    Read a log file in its declared encoding.

    UTF-16 logs are decoded with BOM detection, so both little and big endian
    files written by Windows tools are handled. Undecodable bytes are replaced.

    Raises:
        OSError: If the file cannot be read
    """
    data = Path(reference.path).read_bytes()
    return data.decode(reference.declared_encoding.value, errors="replace")


class LogRecovery:
    """Copies a failed program's own log into the build log, in full."""

    def __init__(self, output_logger: Optional[logging.Logger] = None):
        self.logger = logging.getLogger(__name__)
        self.output = output_logger or get_build_logger()

    def recover(self, reference: ReportLogReference) -> Optional[str]:
        """
        Echo the log referenced by ``reference``.

        Args:
            reference: Log path and declared encoding

        Returns:
            The decoded text, or None if the log could not be read
        """
        try:
            text = read_log(reference)
        except OSError as e:
            self.logger.warning(f"Could not read log {reference.path}: {e}")
            return None

        self.output.info(text)
        return text
