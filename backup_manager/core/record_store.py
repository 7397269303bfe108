"""Record store — one binary record file per backup under the storage root."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from loguru import logger

from backup_manager.core.errors import (
    BackupError,
    CorruptRecordError,
    RecordNotFoundError,
    RecordWriteError,
)
from backup_manager.core.record_codec import (
    RECORD_EXTENSION,
    decode_record,
    encode_record,
    record_filename,
)
from backup_manager.models.backup_record import BackupRecord


class RecordStore:
    """
    Reads, writes and enumerates backup records.

    Layout::

      {storage_root}/
        └── {location}/
              ├── __mrk_{name}.mrkbkp
              └── ... mirrored files ...

    There is no index: every lookup scans the storage root.
    """

    def __init__(self, storage_root: Path) -> None:
        self._root = Path(storage_root)

    @property
    def storage_root(self) -> Path:
        return self._root

    def ensure_storage_root(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def record_path(self, record: BackupRecord) -> Path:
        return Path(record.location) / record_filename(record.name)

    def list_record_files(self) -> Iterator[Path]:
        """Yield every record file under the storage root, in filesystem order."""
        root = self.ensure_storage_root()
        for path in root.rglob(f"*.{RECORD_EXTENSION}"):
            if path.is_file():
                yield path

    def read_record(self, path: Path) -> BackupRecord:
        """Load one record. Raises RecordNotFoundError or CorruptRecordError."""
        path = Path(path)
        if not path.exists():
            raise RecordNotFoundError(f"Record file not found: {path}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise CorruptRecordError(f"Failed to read {path}: {e}") from e
        return decode_record(data)

    def write_record(self, record: BackupRecord) -> Path:
        """Write (truncate and rewrite) the record file inside record.location."""
        path = self.record_path(record)
        try:
            with open(path, "wb") as f:
                f.write(encode_record(record))
        except (OSError, ValueError) as e:
            raise RecordWriteError(f"Failed to write record {path}: {e}") from e
        logger.debug(f"Wrote record {path}")
        return path

    def list_all_records(self) -> list[BackupRecord]:
        """Read every record, skipping unreadable ones with a warning."""
        records: list[BackupRecord] = []
        for path in self.list_record_files():
            try:
                records.append(self.read_record(path))
            except BackupError as e:
                logger.warning(f"Skipping corrupted backup record {path}: {e}")
        return records

    def find_record_by_name(self, name: str) -> BackupRecord | None:
        """First record named *name*, or None."""
        for record in self.list_all_records():
            if record.name == name:
                return record
        return None
