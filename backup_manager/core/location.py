"""Storage location derivation for backups."""

from __future__ import annotations

import random
import string
from pathlib import Path

from loguru import logger

from backup_manager.core.errors import BackupIOError, RecordNotFoundError, StorageLocationError
from backup_manager.models.backup_record import BackupRecord
from backup_manager.utils import sanitize_segment

SUFFIX_MIN_LENGTH = 20
SUFFIX_MAX_LENGTH = 24


def random_suffix(rng: random.Random | None = None) -> str:
    """20-24 ASCII letters, each drawn uniformly from a-z/A-Z."""
    rng = rng or random.Random()
    length = rng.randint(SUFFIX_MIN_LENGTH, SUFFIX_MAX_LENGTH)
    return "".join(rng.choice(string.ascii_letters) for _ in range(length))


def _ensure_inside(path: Path, storage_root: Path) -> Path:
    resolved = path.resolve()
    root = storage_root.resolve()
    if resolved == root or not resolved.is_relative_to(root):
        raise StorageLocationError(f"Storage location {path} is outside storage root {root}")
    return resolved


def existing_location(record: BackupRecord, storage_root: Path) -> Path:
    """Resolve record.location without creating it. Raises if it is missing or outside the root."""
    if not record.location:
        raise StorageLocationError(f"Backup {record.name!r} has no storage location")
    location = _ensure_inside(Path(storage_root) / record.location, Path(storage_root))
    if not location.is_dir():
        raise RecordNotFoundError(f"Storage location of {record.name!r} not found: {location}")
    return location


def derive_location(
    record: BackupRecord,
    storage_root: Path,
    raw: bool,
    rng: random.Random | None = None,
) -> Path:
    """
    Resolve (and create) the physical storage directory of a backup.

    raw=True  → creation: append a fresh random suffix to record.location
                (treated as an optional name hint) under the storage root.
    raw=False → refresh: reuse the already assigned record.location.

    The resolved path is written back into record.location.
    """
    storage_root = Path(storage_root)
    if raw:
        segment = sanitize_segment(record.location) + random_suffix(rng)
        candidate = storage_root / segment
    else:
        if not record.location:
            raise StorageLocationError(f"Backup {record.name!r} has no storage location")
        candidate = Path(record.location)
        if not candidate.is_absolute():
            candidate = storage_root / candidate

    location = _ensure_inside(candidate, storage_root)
    try:
        location.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackupIOError(f"Failed to create storage location {location}: {e}") from e

    if raw:
        logger.debug(f"Assigned storage location {location} to {record.name}")
    record.location = str(location)
    return location
