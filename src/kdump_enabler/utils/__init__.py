"""Utility modules for kdump-enabler."""

from kdump_enabler.utils.command import CommandExecutor
from kdump_enabler.utils.file import FileManager
from kdump_enabler.utils.output import Console

__all__ = ["CommandExecutor", "FileManager", "Console"]
