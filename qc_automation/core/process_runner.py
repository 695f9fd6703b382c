"""
Process execution with live output streaming.
"""

import locale
import logging
import subprocess
import threading
from typing import Optional

from ..models.execution import ExecutionRequest, ExecutionResult
from ..utils.logging import get_build_logger


TIMED_OUT_EXIT_CODE = -1
NOT_STARTED_EXIT_CODE = 127


class ProcessLauncher:
    """Runs an ExecutionRequest, streaming its output to the build log."""

    def __init__(self, output_logger: Optional[logging.Logger] = None):
        """
        Initialize the launcher.

        Args:
            output_logger: Logger receiving the process output line by line
        """
        self.logger = logging.getLogger(__name__)
        self.output = output_logger or get_build_logger()
        self.encoding = locale.getpreferredencoding(False) or "utf-8"

    def run(self, request: ExecutionRequest) -> ExecutionResult:
        """
        Execute the request and wait for it to finish.

        Output is forwarded as it is produced. The process is killed if the
        request's timeout elapses (exit code -1) or if the caller is
        interrupted, in which case the interruption propagates.

        Args:
            request: Command to run

        Returns:
            ExecutionResult with the process exit code
        """
        self.output.info(f"$ {request.display()}")
        args = request.command_line() if request.raw_command_line else list(request.command)

        try:
            process = subprocess.Popen(
                args,
                cwd=request.working_directory,
                env=request.environment,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            self.logger.error(f"Could not start {request.command[0]}: {e}")
            return ExecutionResult(exit_code=NOT_STARTED_EXIT_CODE, stdout_already_streamed=False)

        timed_out = threading.Event()
        timer = None
        if request.timeout_seconds:
            timer = threading.Timer(request.timeout_seconds, self._expire, (process, timed_out))
            timer.daemon = True
            timer.start()

        try:
            for raw_line in process.stdout:
                self.output.info(raw_line.decode(self.encoding, errors="replace").rstrip("\r\n"))
            exit_code = process.wait()
        except BaseException:
            # Build aborted: do not leave the child running
            self._kill(process)
            raise
        finally:
            if timer is not None:
                timer.cancel()
            process.stdout.close()

        if timed_out.is_set():
            self.logger.error(f"Process timed out after {request.timeout_seconds} seconds and was killed")
            return ExecutionResult(exit_code=TIMED_OUT_EXIT_CODE)

        return ExecutionResult(exit_code=exit_code)

    def _expire(self, process: subprocess.Popen, timed_out: threading.Event) -> None:
        if process.poll() is None:
            timed_out.set()
            self._kill(process)

    def _kill(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        try:
            process.kill()
            process.wait(timeout=10)
        except (OSError, subprocess.TimeoutExpired) as e:
            self.logger.warning(f"Failed to kill process {process.pid}: {e}")
