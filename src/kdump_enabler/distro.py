"""Distribution detection and the distro-to-profile lookup table."""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict

from kdump_enabler.exceptions import UnsupportedDistributionError
from kdump_enabler.types import KdumpConfigStyle, PackageManager

logger = structlog.get_logger(__name__)


class OSRelease(BaseModel):
    """Fields of interest from /etc/os-release."""

    model_config = ConfigDict(frozen=True)

    id: str
    version_id: str = "unknown"
    name: str = ""
    pretty_name: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name or self.id} {self.version_id}"


class Bootloader(BaseModel):
    """How to regenerate the grub menu for a family."""

    model_config = ConfigDict(frozen=True)

    command: str
    bios_output: Optional[str] = None
    # Formatted with the upper-cased os-release ID, e.g. /boot/efi/EFI/ROCKY/grub.cfg
    efi_output: Optional[str] = None


class DistributionProfile(BaseModel):
    """Everything distribution-specific the enabler needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    package_manager: PackageManager
    service_name: str
    packages: Tuple[str, ...]
    grub_cmdline_key: str
    bootloader: Bootloader
    kdump_config: KdumpConfigStyle


PROFILES: Dict[str, DistributionProfile] = {
    "debian": DistributionProfile(
        id="debian",
        package_manager=PackageManager.APT,
        service_name="kdump-tools",
        packages=("linux-crashdump", "kdump-tools", "kexec-tools"),
        grub_cmdline_key="GRUB_CMDLINE_LINUX_DEFAULT",
        bootloader=Bootloader(command="update-grub"),
        kdump_config=KdumpConfigStyle.FLAT,
    ),
    "rhel": DistributionProfile(
        id="rhel",
        package_manager=PackageManager.YUM,
        service_name="kdump",
        packages=("kexec-tools",),
        grub_cmdline_key="GRUB_CMDLINE_LINUX",
        bootloader=Bootloader(
            command="grub2-mkconfig",
            bios_output="/boot/grub2/grub.cfg",
            efi_output="/boot/efi/EFI/{distro}/grub.cfg",
        ),
        kdump_config=KdumpConfigStyle.DIRECTIVE,
    ),
    "fedora": DistributionProfile(
        id="fedora",
        package_manager=PackageManager.DNF,
        service_name="kdump",
        packages=("kexec-tools",),
        grub_cmdline_key="GRUB_CMDLINE_LINUX",
        bootloader=Bootloader(
            command="grub2-mkconfig",
            bios_output="/boot/grub2/grub.cfg",
            efi_output="/boot/efi/EFI/{distro}/grub.cfg",
        ),
        kdump_config=KdumpConfigStyle.DIRECTIVE,
    ),
    "suse": DistributionProfile(
        id="suse",
        package_manager=PackageManager.ZYPPER,
        service_name="kdump",
        packages=("kdump",),
        grub_cmdline_key="GRUB_CMDLINE_LINUX_DEFAULT",
        bootloader=Bootloader(command="grub2-mkconfig", bios_output="/boot/grub2/grub.cfg"),
        kdump_config=KdumpConfigStyle.DIRECTIVE,
    ),
    "arch": DistributionProfile(
        id="arch",
        package_manager=PackageManager.PACMAN,
        service_name="kdump",
        packages=("kexec-tools",),
        grub_cmdline_key="GRUB_CMDLINE_LINUX_DEFAULT",
        bootloader=Bootloader(command="grub-mkconfig", bios_output="/boot/grub/grub.cfg"),
        kdump_config=KdumpConfigStyle.NONE,
    ),
}

# os-release ID -> family. Adding a distribution is one entry here.
ALIASES: Dict[str, str] = {
    "ubuntu": "debian",
    "debian": "debian",
    "pop": "debian",
    "rhel": "rhel",
    "centos": "rhel",
    "rocky": "rhel",
    "almalinux": "rhel",
    "fedora": "fedora",
    "opensuse": "suse",
    "opensuse-leap": "suse",
    "opensuse-tumbleweed": "suse",
    "sles": "suse",
    "arch": "arch",
    "manjaro": "arch",
}


def parse_os_release(text: str) -> OSRelease:
    """Parse os-release content without sourcing it.

    Raises:
        UnsupportedDistributionError: If no ID is present
    """
    data: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        data[key.strip()] = value.strip().strip('"').strip("'")

    if not data.get("ID"):
        raise UnsupportedDistributionError("Cannot detect distribution (no ID in os-release)")

    return OSRelease(
        id=data["ID"],
        version_id=data.get("VERSION_ID") or "unknown",
        name=data.get("NAME", ""),
        pretty_name=data.get("PRETTY_NAME", ""),
    )


def read_os_release(path: Path) -> OSRelease:
    """Read and parse the identity file.

    Raises:
        UnsupportedDistributionError: If the file is missing or unreadable
    """
    try:
        text = path.read_text()
    except OSError as e:
        raise UnsupportedDistributionError(
            f"Cannot detect distribution (missing {path})"
        ) from e
    return parse_os_release(text)


def supported_identifiers() -> List[str]:
    return sorted(ALIASES)


def resolve_profile(identifier: str) -> DistributionProfile:
    """Map an os-release ID to its profile.

    Matching is exact and case-sensitive.

    Raises:
        UnsupportedDistributionError: If the ID is not supported
    """
    family = ALIASES.get(identifier)
    if family is None:
        raise UnsupportedDistributionError(f"Unsupported distribution: {identifier}")
    logger.debug("profile_resolved", identifier=identifier, family=family)
    return PROFILES[family]


def grub_regeneration_commands(
    profile: DistributionProfile, os_id: str, efi: bool
) -> List[List[str]]:
    """Candidate commands to rebuild grub.cfg, tried in order until one succeeds."""
    boot = profile.bootloader
    candidates: List[List[str]] = []

    if efi and boot.efi_output:
        candidates.append([boot.command, "-o", boot.efi_output.format(distro=os_id.upper())])
    if boot.bios_output:
        candidates.append([boot.command, "-o", boot.bios_output])
    if not candidates:
        candidates.append([boot.command])

    return candidates
