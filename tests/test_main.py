"""Tests for the command-line interface."""

import sys
from types import SimpleNamespace

import pytest

from kdump_enabler import __version__, main as cli
from kdump_enabler.exceptions import UnsupportedDistributionError
from kdump_enabler.utils.log import configure_logging


class FakeEnabler:
    """Stands in for KdumpEnabler and records how it was built."""

    instances = []
    exit_code = 0
    error = None

    def __init__(self, config, options, confirm, console):
        self.options = options
        self.confirm = confirm
        FakeEnabler.instances.append(self)

    def run(self):
        if FakeEnabler.error is not None:
            raise FakeEnabler.error
        return SimpleNamespace(exit_code=FakeEnabler.exit_code)


@pytest.fixture(autouse=True)
def linux(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")


@pytest.fixture
def fake_enabler(monkeypatch):
    FakeEnabler.instances = []
    FakeEnabler.exit_code = 0
    FakeEnabler.error = None
    monkeypatch.setattr(cli, "KdumpEnabler", FakeEnabler)
    return FakeEnabler


def run_cli(argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


def test_version(capsys):
    assert run_cli(["-v"]) == 0
    assert f"kdump-enabler v{__version__}" in capsys.readouterr().out


def test_help(capsys):
    assert run_cli(["--help"]) == 0
    out = capsys.readouterr().out
    assert "--check-only" in out
    assert "--no-sysrq" in out


def test_unknown_flag_exits_one(capsys):
    assert run_cli(["--frobnicate"]) == 1
    assert "--help" in capsys.readouterr().err


def test_flags_become_options(fake_enabler):
    assert run_cli(["-y", "--no-sysrq", "--check-only", "--quiet"]) == 0

    options = fake_enabler.instances[0].options
    assert options.auto_confirm
    assert options.skip_sysrq
    assert options.check_only


def test_defaults_are_interactive(fake_enabler):
    run_cli([])

    options = fake_enabler.instances[0].options
    assert not options.auto_confirm
    assert not options.skip_sysrq
    assert not options.check_only
    assert fake_enabler.instances[0].confirm is cli.ask_yes_no


def test_report_exit_code_propagates(fake_enabler):
    fake_enabler.exit_code = 1
    assert run_cli(["--check-only"]) == 1


def test_fatal_error_exits_one(fake_enabler, capsys):
    fake_enabler.error = UnsupportedDistributionError("Unsupported distribution: plan9")

    assert run_cli(["-y"]) == 1
    assert "Unsupported distribution: plan9" in capsys.readouterr().err


def test_interrupt(fake_enabler):
    fake_enabler.error = KeyboardInterrupt()
    assert run_cli(["-y"]) == 130


def test_non_linux(monkeypatch, fake_enabler):
    monkeypatch.setattr(sys, "platform", "darwin")
    assert run_cli([]) == 1
    assert fake_enabler.instances == []


def test_banner_suppressed_when_quiet(fake_enabler, capsys):
    run_cli(["--quiet"])
    assert "KDUMP ENABLER" not in capsys.readouterr().out


@pytest.mark.parametrize(
    "answer, expected",
    [("y", True), ("Y", True), ("y\n", True), ("yes", False), ("n", False), ("", False)],
)
def test_ask_yes_no(monkeypatch, answer, expected):
    monkeypatch.setattr("builtins.input", lambda prompt: answer)
    assert cli.ask_yes_no("Continue? ") is expected


def test_ask_yes_no_eof(monkeypatch):
    def closed(prompt):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    assert cli.ask_yes_no("Continue? ") is False


def test_log_file_closed_on_exit(monkeypatch, fake_enabler, tmp_path):
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "kdump.log"))
    opened = []

    def recording(config, verbose=False):
        log_file = configure_logging(config, verbose=verbose)
        opened.append(log_file)
        return log_file

    monkeypatch.setattr(cli, "configure_logging", recording)

    assert run_cli(["-y"]) == 0
    assert opened[0] is not None
    assert opened[0].closed
    assert (tmp_path / "logs" / "kdump.log").exists()
