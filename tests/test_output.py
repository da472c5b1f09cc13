"""Tests for user-facing console output."""

import io

from kdump_enabler.utils.output import Console


def make_console(**kwargs):
    out, err = io.StringIO(), io.StringIO()
    return Console(stream=out, err_stream=err, **kwargs), out, err


def test_plain_when_colour_disabled():
    console, out, _ = make_console(color=False)

    console.success("Packages installed successfully")

    assert out.getvalue() == "✅ Packages installed successfully\n"


def test_colour_forced():
    console, out, _ = make_console(color=True)

    console.warning("SysRq is disabled")

    assert "\x1b[" in out.getvalue()
    assert "SysRq is disabled" in out.getvalue()


def test_colour_stripped_on_non_terminal():
    console, out, _ = make_console()

    console.info("Detecting Linux distribution...")

    assert "\x1b[" not in out.getvalue()


def test_errors_go_to_error_stream():
    console, out, err = make_console(color=False)

    console.error("Unsupported distribution: plan9")

    assert out.getvalue() == ""
    assert "Unsupported distribution: plan9" in err.getvalue()


def test_quiet_keeps_warnings_only():
    console, out, _ = make_console(quiet=True, color=False)

    console.info("hidden")
    console.success("hidden")
    console.line("hidden")
    console.warning("Please reboot your system to apply all changes")

    assert "hidden" not in out.getvalue()
    assert "Please reboot" in out.getvalue()
