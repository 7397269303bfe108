"""Tests for the RecordStore."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from backup_manager.core.errors import CorruptRecordError, RecordNotFoundError, RecordWriteError
from backup_manager.core.record_store import RecordStore
from backup_manager.models.backup_record import BackupRecord


@pytest.fixture
def store(tmp_path: Path) -> RecordStore:
    return RecordStore(tmp_path / "storage")


def make_record(store: RecordStore, name: str, folder: str | None = None) -> BackupRecord:
    location = store.storage_root / (folder or f"{name}XyZ")
    location.mkdir(parents=True, exist_ok=True)
    return BackupRecord(
        name=name,
        source=f"/src/{name}",
        location=str(location),
        created_at=datetime(2024, 1, 2, 3, 4, 5),
        last_modified=datetime(2024, 1, 2, 3, 4, 5),
    )


class TestReadWrite:
    def test_write_then_read(self, store: RecordStore) -> None:
        record = make_record(store, "docs")
        path = store.write_record(record)
        assert path.name == "__mrk_docs.mrkbkp"
        assert path.parent == Path(record.location)
        assert store.read_record(path) == record

    def test_rewrite_replaces_file(self, store: RecordStore) -> None:
        record = make_record(store, "docs")
        store.write_record(record)
        record.last_modified = datetime(2025, 1, 1)
        path = store.write_record(record)
        assert store.read_record(path).last_modified == datetime(2025, 1, 1)

    def test_read_missing(self, store: RecordStore, tmp_path: Path) -> None:
        with pytest.raises(RecordNotFoundError):
            store.read_record(tmp_path / "nope.mrkbkp")

    def test_read_garbage(self, store: RecordStore, tmp_path: Path) -> None:
        bad = tmp_path / "bad.mrkbkp"
        bad.write_bytes(b"\x05ab")
        with pytest.raises(CorruptRecordError):
            store.read_record(bad)

    def test_write_into_missing_directory(self, store: RecordStore, tmp_path: Path) -> None:
        record = BackupRecord(name="x", source="/src", location=str(tmp_path / "missing"))
        with pytest.raises(RecordWriteError):
            store.write_record(record)

    def test_write_with_null_byte_in_name(self, store: RecordStore, tmp_path: Path) -> None:
        record = BackupRecord(name="bad\x00name", source="/src", location=str(tmp_path))
        with pytest.raises(RecordWriteError):
            store.write_record(record)


class TestEnumeration:
    def test_root_created_lazily(self, store: RecordStore) -> None:
        assert not store.storage_root.exists()
        assert list(store.list_record_files()) == []
        assert store.storage_root.is_dir()

    def test_list_record_files_is_lazy(self, store: RecordStore) -> None:
        files = store.list_record_files()
        assert iter(files) is files

    def test_only_record_extension_recursive(self, store: RecordStore) -> None:
        record = make_record(store, "docs")
        store.write_record(record)
        nested = Path(record.location) / "deep" / "er"
        nested.mkdir(parents=True)
        (nested / "__mrk_other.mrkbkp").write_bytes(b"")
        (Path(record.location) / "notes.txt").write_text("hi")

        names = sorted(p.name for p in store.list_record_files())
        assert names == ["__mrk_docs.mrkbkp", "__mrk_other.mrkbkp"]

    def test_corrupt_record_skipped(self, store: RecordStore) -> None:
        store.write_record(make_record(store, "good"))
        broken = store.storage_root / "brokenDir"
        broken.mkdir()
        (broken / "__mrk_broken.mrkbkp").write_bytes(b"\xff\x00garbage")

        records = store.list_all_records()
        assert [r.name for r in records] == ["good"]

    def test_find_by_name(self, store: RecordStore) -> None:
        store.write_record(make_record(store, "docs"))
        store.write_record(make_record(store, "photos"))
        found = store.find_record_by_name("photos")
        assert found is not None
        assert found.source == "/src/photos"
        assert store.find_record_by_name("music") is None

    def test_find_with_duplicates_returns_one(self, store: RecordStore) -> None:
        store.write_record(make_record(store, "dup", folder="one"))
        store.write_record(make_record(store, "dup", folder="two"))
        found = store.find_record_by_name("dup")
        assert found is not None
        assert found.name == "dup"
