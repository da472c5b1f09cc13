"""Package installation through the distribution package manager."""

from typing import Dict, List, Sequence

import structlog

from kdump_enabler.exceptions import PackageInstallError
from kdump_enabler.types import CommandResult, PackageManager
from kdump_enabler.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)

INSTALL_COMMANDS: Dict[PackageManager, List[str]] = {
    PackageManager.APT: ["apt-get", "install", "-y"],
    PackageManager.YUM: ["yum", "install", "-y", "-q"],
    PackageManager.DNF: ["dnf", "install", "-y", "-q"],
    PackageManager.ZYPPER: ["zypper", "--non-interactive", "install"],
    PackageManager.PACMAN: ["pacman", "-Sy", "--noconfirm"],
}

# Run before installing; the index must be fresh on apt hosts.
REFRESH_COMMANDS: Dict[PackageManager, List[str]] = {
    PackageManager.APT: ["apt-get", "update", "-qq"],
}

ENVIRONMENT: Dict[PackageManager, Dict[str, str]] = {
    PackageManager.APT: {"DEBIAN_FRONTEND": "noninteractive"},
}


class PackageInstaller:
    """Install packages non-interactively."""

    def __init__(
        self, executor: CommandExecutor, manager: PackageManager, timeout: int = 600
    ) -> None:
        self.executor = executor
        self.manager = manager
        self.timeout = timeout

    def install_command(self, packages: Sequence[str]) -> List[str]:
        return [*INSTALL_COMMANDS[self.manager], *packages]

    def install(self, packages: Sequence[str]) -> CommandResult:
        """Install ``packages``.

        Raises:
            PackageInstallError: If the refresh or install command fails
        """
        env = ENVIRONMENT.get(self.manager)

        refresh = REFRESH_COMMANDS.get(self.manager)
        if refresh:
            result = self.executor.execute(refresh, check=False, timeout=self.timeout, env=env)
            if not result.success:
                raise PackageInstallError(
                    f"Package index refresh failed: {result.stderr.strip()}"
                )

        cmd = self.install_command(packages)
        logger.info("package_install", manager=self.manager.value, packages=list(packages))
        result = self.executor.execute(cmd, check=False, timeout=self.timeout, env=env)
        if not result.success:
            raise PackageInstallError(
                f"Package installation failed ({self.manager.value}): {result.stderr.strip()}"
            )
        return result
