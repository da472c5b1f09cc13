"""kdump-enabler - automated kernel crash dump setup for Linux."""

__version__ = "1.0.0"
__license__ = "MIT"

from kdump_enabler.exceptions import (
    EnablerError,
    ConfigurationError,
    SystemRequirementError,
    UnsupportedDistributionError,
    PackageInstallError,
)
from kdump_enabler.enabler import KdumpEnabler, EnablerOptions
from kdump_enabler.system_info import SystemInfo

__all__ = [
    "KdumpEnabler",
    "EnablerOptions",
    "SystemInfo",
    "EnablerError",
    "ConfigurationError",
    "SystemRequirementError",
    "UnsupportedDistributionError",
    "PackageInstallError",
]
