"""File management utilities."""

import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from kdump_enabler.types import BackupRecord

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class FileManager:
    """Manage file operations with sibling timestamped backups."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        """Initialize file manager.

        Args:
            clock: Source of the backup timestamp
        """
        self.clock = clock

    def backup_path_for(self, filepath: Path, timestamp: str) -> Path:
        return filepath.with_name(f"{filepath.name}.backup.{timestamp}")

    def backup_file(self, filepath: Path) -> Optional[BackupRecord]:
        """Create timestamped backup of file next to the original.

        Args:
            filepath: Path to file to backup

        Returns:
            Backup record or None if source doesn't exist

        Raises:
            OSError: If the copy fails
        """
        if not filepath.exists():
            return None

        timestamp = self.clock().strftime(BACKUP_TIMESTAMP_FORMAT)
        backup_path = self.backup_path_for(filepath, timestamp)

        shutil.copy2(filepath, backup_path)

        return BackupRecord(
            original_path=str(filepath),
            backup_path=str(backup_path),
            timestamp=timestamp,
        )

    def read_file(self, filepath: Path) -> str:
        """Read file content.

        Args:
            filepath: Path to file

        Returns:
            File content as string
        """
        with open(filepath) as f:
            return f.read()

    def write_file(self, filepath: Path, content: str) -> None:
        """Write content to file.

        Args:
            filepath: Path to file
            content: Content to write
        """
        with open(filepath, "w") as f:
            f.write(content)
