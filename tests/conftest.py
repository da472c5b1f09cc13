"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from kdump_enabler.config import EnablerConfig, KdumpSettings, LoggingConfig, PathsConfig
from kdump_enabler.exceptions import CommandExecutionError
from kdump_enabler.system_info import SystemInfo
from kdump_enabler.types import CommandResult
from kdump_enabler.utils.command import CommandExecutor
from kdump_enabler.utils.log import configure_logging
from kdump_enabler.utils.output import Console

OK = CommandResult(True, "", "", 0)
FAILED = CommandResult(False, "", "failed", 1)

OS_RELEASES = {
    "ubuntu": 'NAME="Ubuntu"\nVERSION_ID="24.04"\nID=ubuntu\nID_LIKE=debian\n',
    "rocky": 'NAME="Rocky Linux"\nVERSION_ID="9.3"\nID="rocky"\nID_LIKE="rhel centos fedora"\n',
    "arch": 'NAME="Arch Linux"\nID=arch\n',
    "plan9": 'NAME="Plan 9"\nID=plan9\n',
}


class ScriptedExecutor(CommandExecutor):
    """Records commands and answers them from a prefix table instead of running them."""

    def __init__(self, responses: Optional[Dict[Tuple[str, ...], CommandResult]] = None) -> None:
        super().__init__()
        self.responses = dict(responses or {})
        self.calls: List[List[str]] = []

    def execute(
        self,
        cmd: Union[str, Sequence[str]],
        check: bool = True,
        timeout: Optional[int] = None,
        env=None,
    ) -> CommandResult:
        argv = [cmd] if isinstance(cmd, str) else list(cmd)
        self.calls.append(argv)

        result = OK
        for prefix in sorted(self.responses, key=len, reverse=True):
            if tuple(argv[: len(prefix)]) == prefix:
                result = self.responses[prefix]
                break

        if check and not result.success:
            raise CommandExecutionError(f"Command failed: {argv}")
        return result

    def ran(self, *prefix: str) -> bool:
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)


class FakeSystemInfo(SystemInfo):
    """SystemInfo with a fixed RAM size and privilege level."""

    def __init__(self, config: EnablerConfig, ram_gb: int = 4, root: bool = True) -> None:
        super().__init__(config)
        self.ram_gb = ram_gb
        self.root = root

    @property
    def is_root(self) -> bool:
        return self.root

    def total_ram_gb(self) -> int:
        return self.ram_gb


def write_os_release(root: Path, name: str) -> None:
    (root / "etc/os-release").write_text(OS_RELEASES[name])


def snapshot(root: Path) -> Dict[str, bytes]:
    """Every file under root with its content."""
    return {
        str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()
    }


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    configure_logging(LoggingConfig(level="CRITICAL"))


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """A minimal fake host filesystem."""
    root = tmp_path / "host"
    for directory in ("etc/default", "etc/sysctl.d", "proc/sys/kernel", "var"):
        (root / directory).mkdir(parents=True)

    (root / "proc/cmdline").write_text("BOOT_IMAGE=/boot/vmlinuz root=/dev/sda1 ro quiet splash\n")
    (root / "proc/sys/kernel/sysrq").write_text("0\n")
    (root / "etc/default/grub").write_text(
        'GRUB_DEFAULT=0\nGRUB_CMDLINE_LINUX_DEFAULT="quiet splash"\nGRUB_CMDLINE_LINUX=""\n'
    )
    write_os_release(root, "ubuntu")
    return root


@pytest.fixture
def test_config(host_root: Path) -> EnablerConfig:
    """Create test configuration rooted at the fake host."""
    return EnablerConfig(
        paths=PathsConfig(root=host_root),
        kdump=KdumpSettings(),
        logging=LoggingConfig(level="CRITICAL"),
    )


@pytest.fixture
def executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def system(test_config: EnablerConfig) -> FakeSystemInfo:
    return FakeSystemInfo(test_config)


@pytest.fixture
def console() -> Console:
    return Console(color=False)
