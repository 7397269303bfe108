"""Record codec — binary layout of a backup record file.

Layout (little-endian, fixed order)::

    name            7-bit length-prefixed UTF-8 string
    source          7-bit length-prefixed UTF-8 string
    location        7-bit length-prefixed UTF-8 string
    created_at      int64 ticks (100 ns since 0001-01-01)
    last_modified   int64 ticks

Strings and tick counts follow the .NET ``BinaryWriter`` conventions.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta

from backup_manager.core.errors import CorruptRecordError
from backup_manager.models.backup_record import BackupRecord

RECORD_EXTENSION = "mrkbkp"
RECORD_PREFIX = "__mrk_"

_EPOCH = datetime(1, 1, 1)
_TICKS_PER_MICROSECOND = 10
_MAX_TICKS = 3155378975999999999  # 9999-12-31 23:59:59.9999999
_INT64 = struct.Struct("<q")


def record_filename(name: str) -> str:
    """File name of the record for backup *name*."""
    return f"{RECORD_PREFIX}{name}.{RECORD_EXTENSION}"


# ── Timestamps ──


def datetime_to_ticks(value: datetime) -> int:
    """Convert a datetime to 100 ns ticks. Aware values are shifted to local time."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    delta = value - _EPOCH
    return (
        delta.days * 864_000_000_000
        + delta.seconds * 10_000_000
        + delta.microseconds * _TICKS_PER_MICROSECOND
    )


def ticks_to_datetime(ticks: int) -> datetime:
    """Convert ticks back to a naive datetime, truncating to microseconds."""
    if not 0 <= ticks <= _MAX_TICKS:
        raise CorruptRecordError(f"Timestamp out of range: {ticks}")
    return _EPOCH + timedelta(microseconds=ticks // _TICKS_PER_MICROSECOND)


# ── Primitives ──


def _encode_7bit_int(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _read_7bit_int(data: bytes, offset: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise CorruptRecordError("Unexpected end of record while reading length prefix")
        if shift >= 35:
            raise CorruptRecordError("Malformed length prefix")
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            return result, offset


def _encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _encode_7bit_int(len(raw)) + raw


def _read_string(data: bytes, offset: int) -> tuple[str, int]:
    length, offset = _read_7bit_int(data, offset)
    end = offset + length
    if end > len(data):
        raise CorruptRecordError(
            f"Unexpected end of record: string needs {length} bytes, {len(data) - offset} left"
        )
    try:
        return data[offset:end].decode("utf-8"), end
    except UnicodeDecodeError as e:
        raise CorruptRecordError(f"Invalid UTF-8 in record: {e}") from e


def _read_int64(data: bytes, offset: int) -> tuple[int, int]:
    if offset + _INT64.size > len(data):
        raise CorruptRecordError("Unexpected end of record while reading timestamp")
    return _INT64.unpack_from(data, offset)[0], offset + _INT64.size


# ── Records ──


def encode_record(record: BackupRecord) -> bytes:
    """Serialize a record in the fixed field order."""
    return b"".join(
        (
            _encode_string(record.name),
            _encode_string(record.source),
            _encode_string(record.location),
            _INT64.pack(datetime_to_ticks(record.created_at)),
            _INT64.pack(datetime_to_ticks(record.last_modified)),
        )
    )


def decode_record(data: bytes) -> BackupRecord:
    """Parse a full record. Raises CorruptRecordError on any malformed input."""
    name, offset = _read_string(data, 0)
    source, offset = _read_string(data, offset)
    location, offset = _read_string(data, offset)
    created_ticks, offset = _read_int64(data, offset)
    modified_ticks, offset = _read_int64(data, offset)

    if offset != len(data):
        raise CorruptRecordError(f"{len(data) - offset} trailing byte(s) after record")

    return BackupRecord(
        name=name,
        source=source,
        location=location,
        created_at=ticks_to_datetime(created_ticks),
        last_modified=ticks_to_datetime(modified_ticks),
    )
