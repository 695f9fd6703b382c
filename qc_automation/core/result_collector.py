"""
Hand-off of produced test-set reports to result collection.
"""

import logging
from pathlib import Path
from typing import Iterable, List

from ..models.execution import LogEncoding, ReportLogReference
from .errors import ReportNotGenerated


class ResultCollector:
    """Gathers the report files produced by the test-set runs of one work unit."""

    def __init__(self, workspace: Path):
        self.logger = logging.getLogger(__name__)
        self.workspace = Path(workspace)

    def collect(self, report_paths: Iterable[str]) -> List[ReportLogReference]:
        """
        Resolve report paths against the workspace and keep the existing ones.

        Args:
            report_paths: Report paths returned by RemoteRunner

        Returns:
            References to the reports found, empty if no run took place

        Raises:
            ReportNotGenerated: If runs took place but none left a report
        """
        names = [p for p in report_paths if p]
        if not names:
            self.logger.info("No test set has been run in this work unit; nothing to collect")
            return []

        found = []
        for name in names:
            path = self.workspace / name
            if path.is_file():
                found.append(ReportLogReference(path=str(path), declared_encoding=LogEncoding.UTF16))
            else:
                self.logger.warning(f"Report not found: {path}")

        if not found:
            raise ReportNotGenerated("Report not found")

        self.logger.info(f"Collected {len(found)} report(s)")
        return found
