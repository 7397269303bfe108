"""Tests for the binary record codec."""

from __future__ import annotations

import struct
from datetime import datetime, timedelta

import pytest

from backup_manager.core.errors import CorruptRecordError
from backup_manager.core.record_codec import (
    datetime_to_ticks,
    decode_record,
    encode_record,
    record_filename,
    ticks_to_datetime,
)
from backup_manager.models.backup_record import BackupRecord


@pytest.fixture
def sample_record() -> BackupRecord:
    return BackupRecord(
        name="docs",
        source="/home/u/docs",
        location="/storage/abcdefghijklmnopqrstu",
        created_at=datetime(2021, 5, 4, 12, 30, 15, 123456),
        last_modified=datetime(2021, 6, 1, 8, 0, 0, 999999),
    )


class TestRecordLayout:
    def test_round_trip(self, sample_record: BackupRecord) -> None:
        assert decode_record(encode_record(sample_record)) == sample_record

    def test_field_order_and_encoding(self) -> None:
        record = BackupRecord(
            name="a",
            source="b",
            location="c",
            created_at=datetime(1, 1, 1),
            last_modified=datetime(1, 1, 1) + timedelta(microseconds=1),
        )
        expected = b"\x01a\x01b\x01c" + struct.pack("<q", 0) + struct.pack("<q", 10)
        assert encode_record(record) == expected

    def test_long_string_uses_multibyte_length_prefix(self, sample_record: BackupRecord) -> None:
        sample_record.source = "x" * 200
        data = encode_record(sample_record)
        # "docs" (1+4 bytes), then 200 encoded as 0xC8 0x01
        assert data[5:7] == b"\xc8\x01"
        assert decode_record(data).source == "x" * 200

    def test_unicode_names(self, sample_record: BackupRecord) -> None:
        sample_record.name = "文档-backup"
        assert decode_record(encode_record(sample_record)).name == "文档-backup"


class TestCorruptRecords:
    def test_truncated(self, sample_record: BackupRecord) -> None:
        data = encode_record(sample_record)
        with pytest.raises(CorruptRecordError):
            decode_record(data[:-1])

    def test_trailing_bytes(self, sample_record: BackupRecord) -> None:
        data = encode_record(sample_record)
        with pytest.raises(CorruptRecordError, match="trailing"):
            decode_record(data + b"\x00")

    def test_empty(self) -> None:
        with pytest.raises(CorruptRecordError):
            decode_record(b"")

    def test_garbage_text(self) -> None:
        with pytest.raises(CorruptRecordError):
            decode_record(b"garbage")

    def test_runaway_length_prefix(self) -> None:
        with pytest.raises(CorruptRecordError, match="length prefix"):
            decode_record(b"\xff" * 6)

    def test_invalid_utf8(self) -> None:
        with pytest.raises(CorruptRecordError, match="UTF-8"):
            decode_record(b"\x02\xff\xfe")

    def test_negative_ticks(self) -> None:
        data = b"\x01a\x01b\x01c" + struct.pack("<q", -1) + struct.pack("<q", 0)
        with pytest.raises(CorruptRecordError, match="out of range"):
            decode_record(data)


class TestTicks:
    def test_one_day(self) -> None:
        assert datetime_to_ticks(datetime(1, 1, 2)) == 864_000_000_000

    def test_truncates_sub_microsecond_ticks(self) -> None:
        assert ticks_to_datetime(17) == datetime(1, 1, 1) + timedelta(microseconds=1)

    def test_max_value(self) -> None:
        assert ticks_to_datetime(3155378975999999999) == datetime.max


class TestRecordNames:
    def test_record_filename(self) -> None:
        assert record_filename("docs") == "__mrk_docs.mrkbkp"
