"""Error types raised by the backup core."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Category of a backup failure, as reported to callers."""

    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"
    IO_FAILURE = "io_failure"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_ARGUMENT = "invalid_argument"


class BackupError(Exception):
    """Base class for all backup core errors."""

    kind: ErrorKind = ErrorKind.IO_FAILURE


class RecordNotFoundError(BackupError):
    kind = ErrorKind.NOT_FOUND


class SourceNotFoundError(BackupError):
    """A directory that should be mirrored does not exist."""

    kind = ErrorKind.NOT_FOUND


class CorruptRecordError(BackupError):
    """A record file could not be fully parsed."""

    kind = ErrorKind.CORRUPT


class StorageLocationError(BackupError):
    """A record points outside the storage root."""

    kind = ErrorKind.CORRUPT


class BackupIOError(BackupError):
    kind = ErrorKind.IO_FAILURE


class RecordWriteError(BackupIOError):
    pass


class BackupLockedError(BackupIOError):
    """Another process holds the backup's lock file."""


class DuplicateNameError(BackupError):
    kind = ErrorKind.DUPLICATE_NAME


class InvalidNameError(BackupError):
    kind = ErrorKind.INVALID_ARGUMENT


class InvalidTargetError(BackupError):
    """A restore target would overwrite managed storage."""

    kind = ErrorKind.INVALID_ARGUMENT
