"""Idempotent, backed-up edits to text configuration files."""

import re
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, model_validator

from kdump_enabler.exceptions import BackupError
from kdump_enabler.types import BackupRecord, CommandResult
from kdump_enabler.utils.command import CommandExecutor
from kdump_enabler.utils.file import FileManager

logger = structlog.get_logger(__name__)

ASSIGNMENT_RE = re.compile(
    r"^(?P<key>[^=]+)=(?P<quote>[\"']?)(?P<value>.*?)(?P=quote)(?P<rest>\s*(?:#.*)?)$"
)


class EditMode(str, Enum):
    """How a matching line is treated."""

    REPLACE = "replace"  # overwrite matching lines
    ENSURE = "ensure"  # keep matching lines as they are
    MERGE = "merge"  # merge a key=value argument into the quoted value


class ConfigEdit(BaseModel):
    """A single line-oriented edit.

    Lines matching ``pattern`` are handled according to ``mode``. When no line
    matches, ``line`` is appended.
    """

    model_config = ConfigDict(frozen=True)

    pattern: str
    line: str
    mode: EditMode = EditMode.REPLACE
    token: Optional[str] = None

    @model_validator(mode="after")
    def check_token(self) -> "ConfigEdit":
        if self.mode is EditMode.MERGE and (not self.token or "=" not in self.token):
            raise ValueError("MERGE edits need a key=value token")
        return self

    @classmethod
    def replace(cls, pattern: str, line: str) -> "ConfigEdit":
        return cls(pattern=pattern, line=line, mode=EditMode.REPLACE)

    @classmethod
    def ensure(cls, pattern: str, line: str) -> "ConfigEdit":
        return cls(pattern=pattern, line=line, mode=EditMode.ENSURE)

    @classmethod
    def merge_argument(cls, variable: str, token: str) -> "ConfigEdit":
        """Merge ``token`` into a shell-style ``variable="..."`` assignment."""
        return cls(
            pattern=f"^{re.escape(variable)}=",
            line=f'{variable}="{token}"',
            mode=EditMode.MERGE,
            token=token,
        )

    def matches(self, line: str) -> bool:
        return re.match(self.pattern, line) is not None


def merge_argument(line: str, token: str) -> str:
    """Put ``token`` first in the assignment's value, dropping older copies of its key."""
    match = ASSIGNMENT_RE.match(line)
    if match is None:
        return line

    prefix = token.split("=", 1)[0] + "="
    args = [arg for arg in match.group("value").split() if not arg.startswith(prefix)]
    quote = match.group("quote") or '"'
    value = " ".join([token, *args])
    return f"{match.group('key')}={quote}{value}{quote}{match.group('rest')}"


def apply_edit(text: str, edit: ConfigEdit) -> str:
    """Apply ``edit`` to file content and return the new content.

    Applying the same edit again returns the content unchanged.
    """
    lines = text.splitlines()
    out: List[str] = []
    matched = False

    for line in lines:
        if edit.matches(line):
            matched = True
            if edit.mode is EditMode.REPLACE:
                line = edit.line
            elif edit.mode is EditMode.MERGE:
                line = merge_argument(line, edit.token or "")
        out.append(line)

    if matched and out == lines:
        return text

    if not matched:
        out.append(edit.line)

    return "\n".join(out) + "\n"


def apply_edits(text: str, edits: Sequence[ConfigEdit]) -> str:
    for edit in edits:
        text = apply_edit(text, edit)
    return text


class MutationResult(NamedTuple):
    """Outcome of ConfigMutator.apply."""

    path: Path
    changed: bool
    created: bool = False
    skipped: bool = False
    backup: Optional[BackupRecord] = None


class ConfigMutator:
    """Apply ConfigEdits to files with backup-before-write."""

    def __init__(
        self, file_manager: FileManager, executor: Optional[CommandExecutor] = None
    ) -> None:
        """Initialize config mutator.

        Args:
            file_manager: File access and backups
            executor: Runs bootloader regeneration commands
        """
        self.file_manager = file_manager
        self.executor = executor

    def apply(
        self,
        path: Path,
        edits: Sequence[ConfigEdit],
        create: bool = False,
        critical: bool = False,
    ) -> MutationResult:
        """Apply edits to ``path``.

        Args:
            path: File to edit
            edits: Edits applied in order
            create: Create the file when missing instead of skipping it
            critical: A failed backup aborts the edit instead of warning

        Returns:
            MutationResult describing what happened

        Raises:
            BackupError: If ``critical`` and the backup could not be made
            OSError: If the file cannot be read or written
        """
        exists = path.exists()
        if not exists and not create:
            logger.debug("config_missing_skipped", path=str(path))
            return MutationResult(path=path, changed=False, skipped=True)

        original = self.file_manager.read_file(path) if exists else ""
        updated = apply_edits(original, edits)

        if exists and updated == original:
            logger.debug("config_unchanged", path=str(path))
            return MutationResult(path=path, changed=False)

        backup = None
        if exists:
            try:
                backup = self.file_manager.backup_file(path)
            except OSError as e:
                if critical:
                    raise BackupError(f"Cannot back up {path}: {e}") from e
                logger.warning("backup_failed", path=str(path), error=str(e))

        self.file_manager.write_file(path, updated)
        logger.info(
            "config_updated",
            path=str(path),
            created=not exists,
            backup=backup.backup_path if backup else None,
        )
        return MutationResult(path=path, changed=True, created=not exists, backup=backup)

    def regenerate_bootloader(self, commands: Sequence[Sequence[str]]) -> CommandResult:
        """Run candidate grub regeneration commands until one succeeds.

        Failure is returned, never raised.
        """
        if self.executor is None:
            return CommandResult(False, "", "No command executor configured", -1)

        result = CommandResult(False, "", "No bootloader command available", -1)
        for cmd in commands:
            result = self.executor.execute(cmd, check=False)
            if result.success:
                return result
            logger.info("bootloader_command_failed", command=list(cmd), stderr=result.stderr)
        return result
