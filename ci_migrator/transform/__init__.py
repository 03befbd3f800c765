"""Transform Engine and Backup/Rollback Manager for the mutable dialect."""

from ci_migrator.transform.backup import (
    BackupManager,
    MigrationResult,
    backup_path_for,
    is_backup_path,
    original_path_for,
)
from ci_migrator.transform.rules import (
    AZURE_RULES,
    NO_DIFF,
    TransformRule,
    migration_notes,
    transform,
    unified_diff,
)

__all__ = [
    "AZURE_RULES",
    "NO_DIFF",
    "BackupManager",
    "MigrationResult",
    "TransformRule",
    "backup_path_for",
    "is_backup_path",
    "migration_notes",
    "original_path_for",
    "transform",
    "unified_diff",
]
