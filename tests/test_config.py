"""Tests for configuration module."""

from pathlib import Path

import pytest

from kdump_enabler.config import EnablerConfig, KdumpSettings, LoggingConfig, PathsConfig
from kdump_enabler.exceptions import ConfigurationError


def test_defaults():
    """Test default host locations and tuning."""
    config = EnablerConfig.from_env()

    assert config.paths.root == Path("/")
    assert config.paths.resolve(config.paths.grub_default) == Path("/etc/default/grub")
    assert config.paths.resolve(config.paths.proc_cmdline) == Path("/proc/cmdline")
    assert config.kdump.crash_dir == Path("/var/crash")
    assert config.kdump.sysrq_value == 1
    assert config.kdump.sysctl_dropin == "99-kdump-sysrq.conf"


def test_root_relocates_every_path(tmp_path: Path):
    config = EnablerConfig(paths=PathsConfig(root=tmp_path))

    assert config.paths.resolve(config.paths.sysctl_d) == tmp_path / "etc/sysctl.d"
    assert config.host_path(config.kdump.crash_dir) == tmp_path / "var/crash"


def test_env_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("KDUMP_PATH_ROOT", str(tmp_path))
    monkeypatch.setenv("KDUMP_PATH_GRUB_DEFAULT", "/etc/default/grub.custom")
    monkeypatch.setenv("KDUMP_CRASH_DIR", "/srv/crash")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = EnablerConfig.from_env()

    assert config.paths.resolve(config.paths.grub_default) == tmp_path / "etc/default/grub.custom"
    assert config.host_path(config.kdump.crash_dir) == tmp_path / "srv/crash"
    assert config.logging.level == "DEBUG"


def test_invalid_dropin_name(monkeypatch):
    monkeypatch.setenv("KDUMP_SYSCTL_DROPIN", "../sysctl.conf")

    with pytest.raises(ConfigurationError):
        EnablerConfig.from_env()


def test_invalid_log_level():
    with pytest.raises(ValueError):
        LoggingConfig(level="chatty")


def test_sysrq_value_bounds():
    with pytest.raises(ValueError):
        KdumpSettings(sysrq_value=0)
