"""Type definitions for kdump-enabler."""

from enum import Enum
from typing import NamedTuple


class PackageManager(str, Enum):
    """Supported package managers."""

    APT = "apt"
    YUM = "yum"
    DNF = "dnf"
    ZYPPER = "zypper"
    PACMAN = "pacman"


class KdumpConfigStyle(str, Enum):
    """Layout of the crash-dump tool configuration file."""

    FLAT = "flat"  # KEY=value, /etc/default/kdump-tools
    DIRECTIVE = "directive"  # one directive per line, /etc/kdump.conf
    NONE = "none"


class StepOutcome(str, Enum):
    """Severity of a provisioning step result."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    DEGRADED = "degraded"
    FATAL = "fatal"


class Stage(str, Enum):
    """Orchestrator stages, in execution order."""

    START = "start"
    ROOT_CHECK = "root_check"
    DISTRO_RESOLVED = "distro_resolved"
    STATUS_CHECKED = "status_checked"
    CONFIRM_GATE = "confirm_gate"
    PACKAGES_INSTALLED = "packages_installed"
    BOOT_PARAM_CONFIGURED = "boot_param_configured"
    SERVICE_CONFIG_CONFIGURED = "service_config_configured"
    SERVICE_ENABLED = "service_enabled"
    SYSRQ_ENABLED = "sysrq_enabled"
    DONE = "done"


class CommandResult(NamedTuple):
    """Result of command execution."""

    success: bool
    stdout: str
    stderr: str
    return_code: int = 0


class StepResult(NamedTuple):
    """Result of a single provisioning step."""

    stage: Stage
    outcome: StepOutcome
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in (StepOutcome.SUCCESS, StepOutcome.SKIPPED)


class BackupRecord(NamedTuple):
    """Backup information for manual recovery."""

    original_path: str
    backup_path: str
    timestamp: str
