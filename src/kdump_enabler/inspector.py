"""Current kdump state detection."""

from typing import Callable, Optional, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict

from kdump_enabler.distro import DistributionProfile
from kdump_enabler.exceptions import CommandExecutionError
from kdump_enabler.services import ServiceManager
from kdump_enabler.system_info import CRASHKERNEL_KEY, SystemInfo

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SystemStatus(BaseModel):
    """Point-in-time snapshot of kdump readiness.

    ``crashkernel_param`` reflects the booted kernel only. A value written to
    the grub defaults file stays invisible here until the next reboot.
    """

    model_config = ConfigDict(frozen=True)

    service_exists: Optional[bool] = None
    service_active: Optional[bool] = None
    service_enabled: Optional[bool] = None
    crashkernel_param: Optional[str] = None
    sysrq_value: Optional[int] = None
    crash_dir_present: bool = False
    crash_dump_count: int = 0

    @property
    def sysrq_enabled(self) -> bool:
        return self.sysrq_value is not None and self.sysrq_value >= 1

    @property
    def configured(self) -> bool:
        return self.service_active is True and self.sysrq_enabled


class StateInspector:
    """Build a SystemStatus from independent probes.

    A failing probe degrades only its own field.
    """

    def __init__(
        self,
        profile: DistributionProfile,
        system: SystemInfo,
        services: ServiceManager,
    ) -> None:
        self.profile = profile
        self.system = system
        self.services = services

    def _probe(self, name: str, probe: Callable[[], T], default: T) -> T:
        try:
            return probe()
        except (OSError, ValueError, CommandExecutionError) as e:
            logger.warning("probe_failed", probe=name, error=str(e))
            return default

    def inspect(self) -> SystemStatus:
        unit = self.profile.service_name

        exists = self._probe("service_exists", lambda: self.services.exists(unit), None)
        if exists:
            active = self._probe("service_active", lambda: self.services.is_active(unit), None)
            enabled = self._probe("service_enabled", lambda: self.services.is_enabled(unit), None)
        elif exists is False:
            active, enabled = False, False
        else:
            active, enabled = None, None

        status = SystemStatus(
            service_exists=exists,
            service_active=active,
            service_enabled=enabled,
            crashkernel_param=self._probe(
                "crashkernel", lambda: self.system.cmdline_param(CRASHKERNEL_KEY), None
            ),
            sysrq_value=self._probe("sysrq", self.system.read_sysrq, None),
            crash_dir_present=self._probe("crash_dir", self.system.crash_dir.is_dir, False),
            crash_dump_count=self._probe("crash_dumps", self.system.crash_dump_count, 0),
        )
        logger.debug("status_captured", **status.model_dump())
        return status
