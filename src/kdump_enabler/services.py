"""systemd service control for the crash-dump unit."""

from typing import List, Optional

import structlog

from kdump_enabler.types import CommandResult
from kdump_enabler.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)

# systemctl status exit codes: 0 running, 3 loaded but not running, 4 unknown unit
STATUS_LOADED_CODES = (0, 3)


class ServiceManager:
    """Query and control units through systemctl."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor
        self._available: Optional[bool] = None

    def available(self) -> bool:
        """Whether systemctl exists on this host."""
        if self._available is None:
            self._available = self.executor.check_command_available("systemctl")
        return self._available

    @staticmethod
    def _names(unit: str) -> List[str]:
        if unit.endswith(".service"):
            return [unit]
        return [f"{unit}.service", unit]

    def _first_success(self, action: List[str], unit: str) -> CommandResult:
        result = CommandResult(False, "", "systemctl not available", -1)
        for name in self._names(unit):
            result = self.executor.execute(["systemctl", *action, name], check=False)
            if result.success:
                return result
        return result

    def exists(self, unit: str) -> Optional[bool]:
        """Whether the unit is installed, None without systemctl."""
        if not self.available():
            return None

        listed = self.executor.execute(
            ["systemctl", "list-unit-files", self._names(unit)[0]], check=False
        )
        if listed.success:
            return True

        for name in self._names(unit):
            status = self.executor.execute(["systemctl", "status", name], check=False)
            if status.return_code in STATUS_LOADED_CODES:
                return True
        return False

    def is_active(self, unit: str) -> Optional[bool]:
        if not self.available():
            return None
        return self._first_success(["is-active", "--quiet"], unit).success

    def is_enabled(self, unit: str) -> Optional[bool]:
        if not self.available():
            return None
        return self._first_success(["is-enabled", "--quiet"], unit).success

    def enable(self, unit: str) -> CommandResult:
        result = self._first_success(["enable"], unit)
        logger.debug("service_enable", unit=unit, success=result.success)
        return result

    def start(self, unit: str) -> CommandResult:
        result = self._first_success(["start"], unit)
        logger.debug("service_start", unit=unit, success=result.success)
        return result
