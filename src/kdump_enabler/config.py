"""Configuration management for kdump-enabler."""

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kdump_enabler.exceptions import ConfigurationError


class PathsConfig(BaseSettings):
    """Host file locations.

    Every location is relative to ``root`` so the whole tool can be pointed at
    a mounted image or a scratch tree instead of the live system.
    """

    root: Path = Field(default=Path("/"))
    os_release: Path = Field(default=Path("etc/os-release"))
    proc_cmdline: Path = Field(default=Path("proc/cmdline"))
    sysrq: Path = Field(default=Path("proc/sys/kernel/sysrq"))
    grub_default: Path = Field(default=Path("etc/default/grub"))
    kdump_tools_default: Path = Field(default=Path("etc/default/kdump-tools"))
    kdump_conf: Path = Field(default=Path("etc/kdump.conf"))
    sysctl_conf: Path = Field(default=Path("etc/sysctl.conf"))
    sysctl_d: Path = Field(default=Path("etc/sysctl.d"))
    efi_firmware: Path = Field(default=Path("sys/firmware/efi"))

    model_config = SettingsConfigDict(
        env_prefix="KDUMP_PATH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator(
        "os_release",
        "proc_cmdline",
        "sysrq",
        "grub_default",
        "kdump_tools_default",
        "kdump_conf",
        "sysctl_conf",
        "sysctl_d",
        "efi_firmware",
        mode="before",
    )
    @classmethod
    def strip_leading_slash(cls, v: object) -> object:
        """Store locations relative so they can be joined onto ``root``."""
        if isinstance(v, (str, Path)):
            return Path(str(v).lstrip("/"))
        return v

    def resolve(self, location: Path) -> Path:
        """Return ``location`` anchored under the configured root."""
        return self.root / location


class KdumpSettings(BaseSettings):
    """Crash-dump tuning knobs."""

    crash_dir: Path = Field(default=Path("/var/crash"))
    sysrq_value: int = Field(default=1, ge=1, le=511)
    sysctl_dropin: str = Field(default="99-kdump-sysrq.conf")
    core_collector: str = Field(default="makedumpfile -l --message-level 1 -d 31")
    command_timeout: int = Field(default=30, ge=1)
    package_timeout: int = Field(default=600, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="KDUMP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("sysctl_dropin")
    @classmethod
    def validate_dropin(cls, v: str) -> str:
        """Drop-in files are only read by sysctl when they end in .conf."""
        if "/" in v or not v.endswith(".conf"):
            raise ValueError(f"Invalid sysctl drop-in name: {v}")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="WARNING")
    file: Optional[Path] = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class EnablerConfig(BaseSettings):
    """Main configuration container."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    kdump: KdumpSettings = Field(default_factory=KdumpSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_env(cls) -> "EnablerConfig":
        """Create configuration from environment variables.

        Raises:
            ConfigurationError: If an environment value is invalid
        """
        try:
            return cls(
                paths=PathsConfig(),
                kdump=KdumpSettings(),
                logging=LoggingConfig(),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def host_path(self, location: Path) -> Path:
        """Resolve an absolute host path (such as ``crash_dir``) under root."""
        return self.paths.root / str(location).lstrip("/")
