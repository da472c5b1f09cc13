"""Command execution utilities."""

import os
import shlex
import subprocess
from typing import Mapping, Optional, Sequence, Union

import structlog

from kdump_enabler.exceptions import CommandExecutionError
from kdump_enabler.types import CommandResult

logger = structlog.get_logger(__name__)

Command = Union[str, Sequence[str]]


class CommandExecutor:
    """Execute system commands with proper error handling."""

    def __init__(self, timeout: int = 30) -> None:
        """Initialize command executor.

        Args:
            timeout: Default command timeout in seconds
        """
        self.timeout = timeout

    def execute(
        self,
        cmd: Command,
        check: bool = True,
        timeout: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Execute a command.

        Args:
            cmd: Argument list, or a shell string when shell features are needed
            check: Whether to raise exception on failure
            timeout: Command timeout in seconds, defaults to the executor's
            env: Extra environment variables layered over the current environment

        Returns:
            CommandResult with execution details

        Raises:
            CommandExecutionError: If command fails and check=True
        """
        shell = isinstance(cmd, str)
        display = cmd if shell else shlex.join(cmd)
        timeout = timeout or self.timeout

        run_env = None
        if env:
            run_env = {**os.environ, **env}

        logger.debug("command_start", command=display)

        try:
            result = subprocess.run(
                cmd if shell else list(cmd),
                shell=shell,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
                env=run_env,
            )
        except subprocess.TimeoutExpired as e:
            error_msg = f"Command timed out after {timeout}s: {display}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)
        except OSError as e:
            error_msg = f"Command execution failed: {display}\nError: {e}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)

        cmd_result = CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout,
            stderr=result.stderr,
            return_code=result.returncode,
        )
        logger.debug("command_done", command=display, return_code=result.returncode)

        if check and not cmd_result.success:
            raise CommandExecutionError(
                f"Command failed: {display}\nError: {result.stderr}"
            )

        return cmd_result

    def check_command_available(self, command: str) -> bool:
        """Check if command is available on system."""
        result = self.execute(["which", command], check=False)
        return result.success
