"""User-facing console output."""

from typing import Optional, TextIO

import click


class Console:
    """Print progress lines as each step happens.

    Informational and success lines are dropped in quiet mode; warnings and
    errors are always shown, errors on the error stream. Colour follows
    click: stripped when the stream is not a terminal unless ``color`` forces it.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        err_stream: Optional[TextIO] = None,
        quiet: bool = False,
        color: Optional[bool] = None,
    ) -> None:
        self.stream = stream
        self.err_stream = err_stream
        self.quiet = quiet
        self.color = color

    def _emit(self, tag: str, fg: str, message: str, err: bool = False) -> None:
        click.echo(
            f"{click.style(tag, fg=fg, bold=fg == 'yellow')} {message}",
            file=self.err_stream if err else self.stream,
            err=err,
            color=self.color,
        )

    def info(self, message: str) -> None:
        if not self.quiet:
            self._emit("ℹ️ ", "blue", message)

    def success(self, message: str) -> None:
        if not self.quiet:
            self._emit("✅", "green", message)

    def warning(self, message: str) -> None:
        self._emit("⚠️ ", "yellow", message)

    def error(self, message: str) -> None:
        self._emit("❌", "red", message, err=True)

    def line(self, message: str = "") -> None:
        if not self.quiet:
            click.echo(message, file=self.stream)
