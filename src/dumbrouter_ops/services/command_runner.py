"""Subprocess execution service for dumbrouter-ops."""

import subprocess
from typing import List

from dumbrouter_ops.errors import OpsError, RuntimeUnavailableError
from dumbrouter_ops.errors_catalog import failure_error


class CommandRunner:
    """Runs external commands with consistent error handling.

    Commands run exactly once. Failures are never retried; with ``check``
    enabled they are classified from stderr and raised with the
    toolchain's diagnostic text attached.
    """

    def __init__(self, logger, subprocess_module=subprocess):
        self.logger = logger
        self.subprocess = subprocess_module

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = self.subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
            )
        except FileNotFoundError as exc:
            raise RuntimeUnavailableError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except OSError as exc:
            raise OpsError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0 or not check:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        raise failure_error(stderr, f"Command failed ({result.returncode}): {cmd_str}")
