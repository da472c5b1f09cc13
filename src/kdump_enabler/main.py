"""CLI entry point for kdump-enabler."""

import argparse
import sys
from typing import List, NoReturn, Optional

from kdump_enabler import __version__
from kdump_enabler.config import EnablerConfig
from kdump_enabler.distro import supported_identifiers
from kdump_enabler.enabler import EnablerOptions, KdumpEnabler
from kdump_enabler.exceptions import EnablerError
from kdump_enabler.utils.log import configure_logging
from kdump_enabler.utils.output import Console

BANNER = f"""\
╔══════════════════════════════════════════════════════════════╗
║                    KDUMP ENABLER v{__version__:<27}║
║         Automated kdump configuration for Linux              ║
╚══════════════════════════════════════════════════════════════╝
"""


class ArgumentParser(argparse.ArgumentParser):
    """argparse with usage errors mapped to exit code 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\nUse -h or --help for usage information\n")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = ArgumentParser(
        prog="kdump-enabler",
        description="Automatically enables and configures kdump for kernel crash dump collection.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  sudo kdump-enabler                 # Interactive mode
  sudo kdump-enabler -y              # Auto-confirm all prompts
  sudo kdump-enabler --check-only    # Check current kdump status

Requirements:
  Must be run as root or with sudo.
  Supported IDs: {', '.join(supported_identifiers())}

Environment variables:
  KDUMP_CRASH_DIR       - Crash dump directory (default /var/crash)
  KDUMP_PATH_ROOT       - Operate on a host tree mounted elsewhere
  LOG_LEVEL             - Log level (default WARNING)
  LOG_FILE              - Write JSON logs to this file
        """,
    )

    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s v{__version__}"
    )

    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip confirmation prompts",
    )

    parser.add_argument(
        "--no-sysrq",
        action="store_true",
        help="Skip sysrq crash enablement",
    )

    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only check current configuration without making changes",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress informational output",
    )

    return parser.parse_args(argv)


def ask_yes_no(prompt: str) -> bool:
    """Read a y/N answer from stdin; anything but y/Y declines."""
    try:
        response = input(prompt)
    except EOFError:
        return False
    return response.strip() in ("y", "Y")


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """Main entry point for CLI.

    Raises:
        SystemExit: Always exits with appropriate code
    """
    args = parse_args(argv)

    if not sys.platform.startswith("linux"):
        print("Error: This tool only supports Linux systems", file=sys.stderr)
        sys.exit(1)

    console = Console(quiet=args.quiet)
    log_file = None

    try:
        config = EnablerConfig.from_env()
        log_file = configure_logging(config.logging, verbose=args.verbose)

        if not args.quiet:
            print(BANNER)

        options = EnablerOptions(
            auto_confirm=args.yes,
            skip_sysrq=args.no_sysrq,
            check_only=args.check_only,
        )
        enabler = KdumpEnabler(config, options=options, confirm=ask_yes_no, console=console)
        report = enabler.run()
        sys.exit(report.exit_code)

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user", file=sys.stderr)
        sys.exit(130)

    except EnablerError as e:
        console.error(str(e))
        sys.exit(1)

    except Exception as e:
        console.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)

    finally:
        if log_file is not None:
            log_file.close()


if __name__ == "__main__":
    main()
