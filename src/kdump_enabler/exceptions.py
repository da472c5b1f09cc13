"""Custom exceptions for kdump-enabler."""


class EnablerError(Exception):
    """Base exception for all kdump-enabler errors."""

    pass


class ConfigurationError(EnablerError):
    """Raised when configuration is invalid."""

    pass


class SystemRequirementError(EnablerError):
    """Raised when system requirements are not met."""

    pass


class UnsupportedDistributionError(EnablerError):
    """Raised when the host distribution cannot be detected or is not supported."""

    pass


class CommandExecutionError(EnablerError):
    """Raised when command execution fails."""

    pass


class PackageInstallError(EnablerError):
    """Raised when the package manager fails to install crash-dump tooling."""

    pass


class BackupError(EnablerError):
    """Raised when a required backup could not be created."""

    pass
