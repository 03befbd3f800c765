"""ci_migrator.transform.backup

Backup/Rollback Manager: the per-file migration state machine.

States (per working file):

* ``clean``     - no backup exists; the file (if present) is original
* ``backed-up`` - a sibling backup holds the pristine original; the working
  file may or may not have been overwritten yet
* ``migrated``  - the working file equals the transform of the backup

Only two transitions exist:

* :meth:`BackupManager.apply`    clean/backed-up -> migrated
* :meth:`BackupManager.rollback` backed-up/migrated -> clean

Rules enforced here:

* a backup is created at most once and never overwritten by ``apply``;
* ``apply`` on content the transform would not change writes nothing;
* ``rollback`` without a backup is a no-op; with one, it restores the
  backup bytes and deletes the backup.

The backup is the manager's artifact alone: the Transform Engine only ever
sees the working file's text.

Filesystem errors are not caught here; the runner records them per file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional, Tuple

from ci_migrator.io.fs import encode_text_lossless, write_bytes_atomic
from ci_migrator.transform.rules import transform as azure_transform

logger = logging.getLogger(__name__)

MigrationState = Literal["clean", "backed-up", "migrated"]

BACKUP_SUFFIX = "_backup"


def backup_path_for(path: Path) -> Path:
    """Fixed sibling backup name, keeping the extension family.

    ``azure-pipelines.yml`` -> ``azure-pipelines_backup.yml``
    ``azure-pipelines.yaml`` -> ``azure-pipelines_backup.yaml``
    """
    p = Path(path)
    return p.with_name(f"{p.stem}{BACKUP_SUFFIX}{p.suffix}")


def is_backup_path(path: Path) -> bool:
    return Path(path).stem.endswith(BACKUP_SUFFIX)


def original_path_for(backup: Path) -> Path:
    """Inverse of :func:`backup_path_for`."""
    b = Path(backup)
    if not is_backup_path(b):
        raise ValueError(f"Not a backup path: {b}")
    return b.with_name(f"{b.stem[: -len(BACKUP_SUFFIX)]}{b.suffix}")


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one apply/rollback call on one working file."""

    path: Path
    action: Literal["apply", "rollback"]
    status: Literal["changed", "unchanged", "restored", "noop"]
    touched: Tuple[Path, ...] = ()
    removed: Tuple[Path, ...] = ()
    backup_created: bool = False

    @property
    def changed(self) -> bool:
        return self.status in ("changed", "restored")


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="surrogateescape")


class BackupManager:
    """Apply/rollback state machine around a pure transform."""

    def __init__(
        self,
        transform: Callable[[str], str] = azure_transform,
        backup_namer: Callable[[Path], Path] = backup_path_for,
    ) -> None:
        self._transform = transform
        self._backup_namer = backup_namer

    def backup_path(self, path: Path) -> Path:
        return self._backup_namer(Path(path))

    def transformed_bytes(self, data: bytes) -> bytes:
        return encode_text_lossless(self._transform(_decode(data)))

    def state(self, path: Path) -> MigrationState:
        p = Path(path)
        backup = self.backup_path(p)
        if not backup.exists():
            return "clean"
        if p.exists() and p.read_bytes() == self.transformed_bytes(backup.read_bytes()):
            return "migrated"
        return "backed-up"

    def apply(self, path: Path) -> MigrationResult:
        p = Path(path)
        original = p.read_bytes()
        migrated = self.transformed_bytes(original)

        if migrated == original:
            logger.info("[APPLY] No changes for %s", p.name)
            return MigrationResult(path=p, action="apply", status="unchanged")

        backup = self.backup_path(p)
        created = False
        if not backup.exists():
            write_bytes_atomic(backup, original)
            created = True
            logger.info("[APPLY] Created backup: %s", backup.name)
        else:
            logger.info("[APPLY] Backup already exists, leaving as-is: %s", backup.name)

        write_bytes_atomic(p, migrated)
        logger.info("[APPLY] Updated %s", p.name)
        return MigrationResult(
            path=p,
            action="apply",
            status="changed",
            touched=(p, backup),
            backup_created=created,
        )

    def rollback(self, path: Path) -> MigrationResult:
        p = Path(path)
        backup = self.backup_path(p)
        if not backup.exists():
            logger.info("[ROLLBACK] No backup for %s; nothing to roll back", p.name)
            return MigrationResult(path=p, action="rollback", status="noop")

        pristine = backup.read_bytes()

        if p.exists():
            p.unlink()
            logger.info("[ROLLBACK] Deleted migrated: %s", p.name)

        write_bytes_atomic(p, pristine)
        logger.info("[ROLLBACK] Restored backup -> %s", p.name)

        backup.unlink()
        logger.info("[ROLLBACK] Deleted backup: %s", backup.name)

        return MigrationResult(path=p, action="rollback", status="restored", touched=(p,), removed=(backup,))


_DEFAULT_MANAGER: Optional[BackupManager] = None


def default_manager() -> BackupManager:
    global _DEFAULT_MANAGER
    if _DEFAULT_MANAGER is None:
        _DEFAULT_MANAGER = BackupManager()
    return _DEFAULT_MANAGER


def apply(path: Path) -> MigrationResult:
    return default_manager().apply(path)


def rollback(path: Path) -> MigrationResult:
    return default_manager().rollback(path)
