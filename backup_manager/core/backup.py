"""Backup manager — named full-tree backups with binary record metadata."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from loguru import logger

from backup_manager.core.errors import (
    BackupError,
    BackupIOError,
    DuplicateNameError,
    ErrorKind,
    InvalidNameError,
    InvalidTargetError,
    SourceNotFoundError,
)
from backup_manager.core.location import derive_location, existing_location
from backup_manager.core.lock import backup_lock
from backup_manager.core.record_store import RecordStore
from backup_manager.core.tree_sync import CopyFailurePolicy, SyncResult, TreeSynchronizer
from backup_manager.models.backup_record import BackupRecord
from backup_manager.utils import ILLEGAL_SEGMENT_CHARS

if TYPE_CHECKING:
    from backup_manager.config import Config

# Restore target meaning "put it back where it came from"
ORIGINAL_SOURCE = "$src"


@dataclass
class OperationResult:
    """Result of a backup operation."""

    success: bool = True
    error: str = ""
    error_kind: ErrorKind | None = None
    record: BackupRecord | None = None
    copied_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)

    def fail(self, kind: ErrorKind, message: str) -> OperationResult:
        self.success = False
        self.error_kind = kind
        self.error = message
        return self

    def absorb(self, sync: SyncResult) -> None:
        self.copied_files.extend(sync.copied_files)
        self.skipped_files.extend(sync.skipped_files)
        self.failures.extend(sync.errors)


class BackupManager:
    """Create, update, delete, restore, list and find backups.

    Every public operation returns a result instead of raising for expected
    failures, so a caller loop never dies on a bad path or a full disk.
    """

    def __init__(
        self,
        config: Config,
        store: RecordStore | None = None,
        synchronizer: TreeSynchronizer | None = None,
    ) -> None:
        self._config = config
        self._store = store or RecordStore(self._resolve_storage_root())
        self._sync = synchronizer or TreeSynchronizer(
            CopyFailurePolicy(config.copy_failure_policy)
        )

    def _resolve_storage_root(self) -> Path:
        root = self._config.storage_path
        if not root:
            root = self._config.data_dir / "storage"
        return Path(root)

    @property
    def storage_root(self) -> Path:
        return self._store.storage_root

    @property
    def store(self) -> RecordStore:
        return self._store

    # ── Queries ──

    def list_backups(self) -> list[BackupRecord]:
        return self._store.list_all_records()

    def find_backup(self, name: str) -> BackupRecord | None:
        return self._store.find_record_by_name(name)

    # ── Operations ──

    def _run(self, action: str, name: str, body: Callable[[OperationResult], None]) -> OperationResult:
        result = OperationResult()
        try:
            body(result)
        except BackupError as e:
            result.fail(e.kind, str(e))
        except OSError as e:
            result.fail(ErrorKind.IO_FAILURE, f"{action} failed: {e}")
        except ValueError as e:
            # pathlib and open() reject paths with embedded NUL this way
            result.fail(ErrorKind.INVALID_ARGUMENT, f"{action} failed: {e}")

        if result.success:
            logger.info(f"Backup {name} {action} complete ({len(result.copied_files)} files)")
        else:
            logger.error(f"Backup {name} {action} failed: {result.error}")
        return result

    def _check_sync(self, sync: SyncResult, result: OperationResult) -> None:
        result.absorb(sync)
        if not sync.success:
            path, message = sync.errors[0]
            extra = f" (+{len(sync.errors) - 1} more)" if len(sync.errors) > 1 else ""
            raise BackupIOError(f"Failed to mirror {path}: {message}{extra}")

    @staticmethod
    def _validate_name(name: str) -> None:
        if not name or not name.strip():
            raise InvalidNameError("name cannot be empty")
        if any(ch in name for ch in ILLEGAL_SEGMENT_CHARS):
            raise InvalidNameError(f"name {name!r} contains illegal characters")
        if not name.isprintable():
            raise InvalidNameError(f"name {name!r} contains control characters")

    def create_backup(self, name: str, source: str | Path, location: str = "") -> OperationResult:
        """Register a new backup and copy the source tree into fresh storage.

        Name and source are validated before anything touches the storage root.
        If the copy fails, the record stays behind and can be retried with update.
        """

        def body(result: OperationResult) -> None:
            self._validate_name(name)
            if self.find_backup(name) is not None:
                raise DuplicateNameError(f"backup {name} already exists")
            source_dir = Path(source).expanduser()
            if not source_dir.is_dir():
                raise SourceNotFoundError(f"Source directory not found: {source_dir}")

            now = datetime.now()
            record = BackupRecord(
                name=name,
                source=str(source_dir.resolve()),
                location=location,
                created_at=now,
                last_modified=now,
            )
            storage = derive_location(record, self._store.ensure_storage_root(), raw=True)
            self._store.write_record(record)
            result.record = record

            with backup_lock(storage, self._config.use_lock_files):
                self._check_sync(self._sync.populate(source_dir, storage), result)

        return self._run("create", name, body)

    def update_backup(self, record: BackupRecord) -> OperationResult:
        """Re-mirror the source into the existing storage and refresh last_modified."""

        def body(result: OperationResult) -> None:
            result.record = record
            storage = derive_location(record, self._store.storage_root, raw=False)
            with backup_lock(storage, self._config.use_lock_files):
                self._check_sync(self._sync.populate(Path(record.source), storage), result)
                record.last_modified = datetime.now()
                self._store.write_record(record)

        return self._run("update", record.name, body)

    def delete_backup(self, record: BackupRecord) -> OperationResult:
        """Remove the whole storage subtree, record file included."""

        def body(result: OperationResult) -> None:
            result.record = record
            storage = existing_location(record, self._store.storage_root)
            with backup_lock(storage, self._config.use_lock_files):
                try:
                    shutil.rmtree(storage)
                except OSError as e:
                    raise BackupIOError(f"Failed to delete {storage}: {e}") from e

        return self._run("delete", record.name, body)

    def restore_backup(self, record: BackupRecord, target: str | Path) -> OperationResult:
        """Replace *target* with the backed-up tree. ORIGINAL_SOURCE means record.source."""

        def body(result: OperationResult) -> None:
            result.record = record
            storage = existing_location(record, self._store.storage_root)
            target_dir = Path(record.source if str(target) == ORIGINAL_SOURCE else target)
            self._check_target(target_dir.expanduser())
            with backup_lock(storage, self._config.use_lock_files):
                self._check_sync(self._sync.restore(storage, target_dir.expanduser()), result)

        return self._run("restore", record.name, body)

    def _check_target(self, target: Path) -> None:
        resolved = target.resolve()
        root = self._store.storage_root.resolve()
        if resolved == root or resolved.is_relative_to(root) or root.is_relative_to(resolved):
            raise InvalidTargetError(f"Restore target {target} overlaps the storage root {root}")
