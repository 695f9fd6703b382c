"""
Scripted test-set execution against a Quality Center server.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import MutableMapping, Optional, Sequence

from ..models.execution import ExecutionRequest, LogEncoding, ReportLogReference
from ..utils.macros import Resolver, resolve, scoped_variables
from .errors import ReportNotGenerated, TestSetSchedulerFailed
from .log_recovery import LogRecovery
from .process_runner import ProcessLauncher


PASSWORD_INDEX_IN_SCRIPT_ARGS = 3


@dataclass(frozen=True)
class TestSetInvocation:
    """Unexpanded values of one test-set run, as configured."""

    __test__ = False

    script: Path
    server_url: str
    login: str
    password: str
    domain: str
    project: str
    folder: str
    test_set: str
    report_file: str
    timeout: str


class RemoteRunner:
    """Builds and runs the test-set script, recovering its log on failure."""

    def __init__(self,
                 interpreter: str = "cscript",
                 interpreter_args: Sequence[str] = ("/nologo",),
                 launcher: Optional[ProcessLauncher] = None,
                 log_recovery: Optional[LogRecovery] = None,
                 process_timeout_seconds: Optional[int] = None):
        """
        Initialize the runner.

        Args:
            interpreter: Script host executable
            interpreter_args: Arguments placed before the script path
            launcher: Process launcher
            log_recovery: Used to echo the report log on failure
            process_timeout_seconds: Optional hard limit enforced by the launcher
        """
        self.logger = logging.getLogger(__name__)
        self.interpreter = interpreter
        self.interpreter_args = tuple(interpreter_args)
        self.launcher = launcher or ProcessLauncher()
        self.log_recovery = log_recovery or LogRecovery()
        self.process_timeout_seconds = process_timeout_seconds

    @staticmethod
    def scoped_env(invocation: TestSetInvocation) -> dict:
        """Variables usable in the configured values, e.g. in the report file name."""
        return {
            "QC_DOMAIN": invocation.domain,
            "QC_PROJECT": invocation.project,
            "TS_FOLDER": invocation.folder,
            "TS_NAME": invocation.test_set,
        }

    def build_request(self,
                      invocation: TestSetInvocation,
                      env: MutableMapping[str, str],
                      build_variables: Optional[Resolver] = None) -> ExecutionRequest:
        """
        Build the script command line.

        The scoped test-set variables are only present in ``env`` while the
        arguments are resolved. The password position is always masked; a
        blank password is still passed, as an empty argument.

        Args:
            invocation: Configured values
            env: Build environment, used for $VAR expansion
            build_variables: Build variables, replaced after expansion

        Returns:
            ExecutionRequest running in the script's directory
        """
        script = Path(invocation.script)

        with scoped_variables(env, self.scoped_env(invocation)):
            def value(raw: str) -> str:
                return resolve(raw, env, build_variables)

            password = value(invocation.password) if invocation.password and invocation.password.strip() else ""
            script_args = [
                str(script),
                value(invocation.server_url),
                value(invocation.login),
                password,
                value(invocation.domain),
                value(invocation.project),
                value(invocation.folder),
                value(invocation.test_set),
                value(invocation.report_file),
                value(invocation.timeout),
            ]

        prefix = (self.interpreter,) + self.interpreter_args
        return ExecutionRequest(
            command=prefix + tuple(script_args),
            masked_indices=frozenset({len(prefix) + PASSWORD_INDEX_IN_SCRIPT_ARGS}),
            working_directory=str(script.parent),
            timeout_seconds=self.process_timeout_seconds,
        )

    def report_path(self, request: ExecutionRequest) -> str:
        """Resolved report file argument of a request built by this runner."""
        return request.command[-2]

    def run(self,
            invocation: TestSetInvocation,
            env: MutableMapping[str, str],
            build_variables: Optional[Resolver] = None) -> str:
        """
        Run the test set once.

        Args:
            invocation: Configured values
            env: Build environment
            build_variables: Build variables

        Returns:
            The resolved report file path, relative to the script directory
            unless configured as absolute

        Raises:
            TestSetSchedulerFailed: If the script exits with a non-zero code
            ReportNotGenerated: If the script succeeded without writing the report
        """
        request = self.build_request(invocation, env, build_variables)
        report = self.report_path(request)
        report_file = Path(request.working_directory) / report

        self.logger.info(f"Running test set {invocation.folder}/{invocation.test_set}")
        result = self.launcher.run(request)

        if not result.succeeded:
            self.logger.error(
                f"The test set scheduler failed (exit code {result.exit_code}); run log follows"
            )
            self.log_recovery.recover(
                ReportLogReference(path=str(report_file), declared_encoding=LogEncoding.UTF16)
            )
            raise TestSetSchedulerFailed(
                f"Test set {invocation.test_set} failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
            )

        if not report_file.exists():
            message = f"The test set report was not generated: {report_file}"
            self.logger.error(message)
            raise ReportNotGenerated(message)

        return report
