"""Live kernel and host probes for kdump-enabler."""

import os
from pathlib import Path
from typing import Dict, Optional

import psutil
import structlog

from kdump_enabler.config import EnablerConfig

logger = structlog.get_logger(__name__)

CRASHKERNEL_KEY = "crashkernel"
DUMP_PATTERNS = ("*.crash", "vmcore*", "dump.*")


class SystemInfo:
    """Read host state from the kernel and filesystem."""

    def __init__(self, config: EnablerConfig) -> None:
        """Initialize system probes.

        Args:
            config: Configuration holding the host paths to read
        """
        self.config = config
        self.paths = config.paths

    @property
    def is_root(self) -> bool:
        return os.geteuid() == 0

    @property
    def is_efi(self) -> bool:
        return self.paths.resolve(self.paths.efi_firmware).is_dir()

    def total_ram_gb(self) -> int:
        """Total physical memory in whole GiB, truncated."""
        return psutil.virtual_memory().total // 1024**3

    def kernel_cmdline(self) -> str:
        """Command line of the running kernel.

        Raises:
            OSError: If /proc/cmdline cannot be read
        """
        return self.paths.resolve(self.paths.proc_cmdline).read_text().strip()

    def cmdline_param(self, key: str = CRASHKERNEL_KEY) -> Optional[str]:
        """Return ``key=value`` from the running kernel's command line, if set.

        Raises:
            OSError: If /proc/cmdline cannot be read
        """
        for token in self.kernel_cmdline().split():
            if token.startswith(f"{key}="):
                return token
        return None

    def has_crashkernel(self) -> bool:
        """Whether the booted kernel reserved crash memory.

        An unreadable command line counts as not set.
        """
        try:
            return self.cmdline_param(CRASHKERNEL_KEY) is not None
        except OSError as e:
            logger.warning("cmdline_unreadable", error=str(e))
            return False

    @property
    def sysrq_path(self) -> Path:
        return self.paths.resolve(self.paths.sysrq)

    def read_sysrq(self) -> Optional[int]:
        """Live SysRq mask, or None when the node does not exist.

        Raises:
            OSError: If the node exists but cannot be read
            ValueError: If the node does not hold an integer
        """
        if not self.sysrq_path.exists():
            return None
        return int(self.sysrq_path.read_text().strip())

    def write_sysrq(self, value: int) -> None:
        """Set the live SysRq mask.

        Raises:
            OSError: If the node cannot be written
        """
        self.sysrq_path.write_text(f"{value}\n")

    @property
    def crash_dir(self) -> Path:
        return self.config.host_path(self.config.kdump.crash_dir)

    def crash_dump_count(self) -> int:
        """Number of dump artifacts under the crash directory."""
        if not self.crash_dir.is_dir():
            return 0

        found = set()
        for pattern in DUMP_PATTERNS:
            found.update(p for p in self.crash_dir.rglob(pattern) if p.is_file())
        return len(found)

    def to_dict(self) -> Dict[str, str]:
        """Convert system info to dictionary."""
        return {
            "root": str(self.paths.root),
            "is_root": str(self.is_root),
            "is_efi": str(self.is_efi),
            "crash_dir": str(self.crash_dir),
        }
