"""Tree synchronizer — full recursive mirror of regular files between two roots."""

from __future__ import annotations

import errno
import os
import shutil
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePath
from typing import Callable, Iterable, Iterator

from loguru import logger

from backup_manager.core.errors import BackupIOError, SourceNotFoundError
from backup_manager.core.lock import LOCK_FILENAME
from backup_manager.core.record_codec import RECORD_EXTENSION


class CopyFailurePolicy(StrEnum):
    """What a mirror does after a single file fails to copy."""

    ABORT = "abort"
    CONTINUE = "continue"


@dataclass
class SyncResult:
    """Outcome of one mirror pass."""

    copied_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)  # (path, message)
    aborted: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


def create_recursive_dir(path: Path) -> None:
    """Create *path* one segment at a time, left to right. Existing segments are kept."""
    current = Path()
    for part in Path(path).parts:
        current = current / part
        if not current.is_dir():
            logger.debug(f"Creating dir {current}")
            current.mkdir(exist_ok=True)


def split_relative(path: Path, root: Path) -> tuple[PurePath, str]:
    """Split *path* into (directory relative to *root*, file name)."""
    relative = PurePath(path).relative_to(root)
    return relative.parent, relative.name


class TreeSynchronizer:
    """
    Mirrors every regular file from a source tree into a destination tree.

    Files are always copied (full re-mirror, overwrite). Files present only in
    the destination are left alone. Nothing is rolled back on failure.
    """

    def __init__(self, policy: CopyFailurePolicy = CopyFailurePolicy.ABORT) -> None:
        self._policy = CopyFailurePolicy(policy)

    @property
    def policy(self) -> CopyFailurePolicy:
        return self._policy

    @staticmethod
    def iter_files(
        root: Path,
        prune: Path | None = None,
        on_error: Callable[[OSError], None] | None = None,
    ) -> Iterator[Path]:
        """Yield every regular file under *root* at any depth.

        *prune* is a directory whose subtree is never entered, so a destination
        nested inside the source is not copied into itself. Directories that
        cannot be listed are passed to *on_error*.
        """
        pruned = prune.resolve() if prune is not None else None
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            current = Path(dirpath)
            if pruned is not None:
                dirnames[:] = [d for d in dirnames if (current / d).resolve() != pruned]
            for filename in filenames:
                candidate = current / filename
                if candidate.is_file():
                    yield candidate

    def _record_failure(self, result: SyncResult, path: str, error: OSError) -> None:
        """Add a failure to *result*; under ABORT the mirror stops."""
        result.errors.append((path, str(error)))
        if self._policy is CopyFailurePolicy.ABORT:
            logger.error(f"Mirror failed, aborting: {path}: {error}")
            result.aborted = True
        else:
            logger.warning(f"Mirror failed, continuing: {path}: {error}")

    def mirror(
        self,
        source: Path,
        destination: Path,
        exclude_suffixes: Iterable[str] = (),
        exclude_names: Iterable[str] = (),
    ) -> SyncResult:
        """Copy all files of *source* into *destination*, preserving relative paths."""
        source = Path(source)
        destination = Path(destination)
        if not source.is_dir():
            raise SourceNotFoundError(f"Source directory not found: {source}")

        suffixes = tuple(exclude_suffixes)
        names = frozenset(exclude_names)
        result = SyncResult()

        def on_walk_error(error: OSError) -> None:
            self._record_failure(result, error.filename or str(source), error)

        for file_path in self.iter_files(source, prune=destination, on_error=on_walk_error):
            if result.aborted:
                break
            if (suffixes and file_path.name.endswith(suffixes)) or file_path.name in names:
                result.skipped_files.append(str(file_path))
                continue

            rel_dir, filename = split_relative(file_path, source)
            target_dir = destination / rel_dir
            target = target_dir / filename
            try:
                if not target_dir.is_dir():
                    create_recursive_dir(target_dir)
                if target.is_dir() and not target.is_symlink():
                    raise IsADirectoryError(
                        errno.EISDIR, "Destination path is a directory", str(target)
                    )
                logger.debug(f"Copying {file_path}")
                shutil.copy2(file_path, target)
            except OSError as e:
                self._record_failure(result, str(file_path), e)
                if result.aborted:
                    break
                continue
            result.copied_files.append(str(target))

        return result

    def populate(self, source: Path, location: Path) -> SyncResult:
        """Mirror a source directory into a backup's storage location."""
        return self.mirror(source, location)

    def restore(self, location: Path, target: Path) -> SyncResult:
        """Wipe *target*, then mirror the storage location into it, minus metadata."""
        location = Path(location)
        target = Path(target)
        if not location.is_dir():
            raise SourceNotFoundError(f"Backup storage not found: {location}")

        if target.exists() or target.is_symlink():
            logger.debug(f"Removing existing restore target {target}")
            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                else:
                    target.unlink()
            except OSError as e:
                raise BackupIOError(f"Failed to clear restore target {target}: {e}") from e

        try:
            create_recursive_dir(target)
        except OSError as e:
            raise BackupIOError(f"Failed to create restore target {target}: {e}") from e

        return self.mirror(
            location,
            target,
            exclude_suffixes=(f".{RECORD_EXTENSION}",),
            exclude_names=(LOCK_FILENAME,),
        )
