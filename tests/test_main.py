"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

import main


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger.remove()


class TestOneShot:
    def test_create_then_list(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        src = tmp_path / "docs"
        src.mkdir()
        (src / "a.txt").write_text("alpha")
        data_dir = tmp_path / "data"

        assert main.main(["--data-dir", str(data_dir), "create", "docs", str(src)]) == 0
        assert main.main(["--data-dir", str(data_dir), "list"]) == 0

        out = capsys.readouterr().out
        assert "backup docs was created" in out
        assert "docs" in out.splitlines()[-1]
        assert (data_dir / "logs" / "backup-manager.log").exists()
        assert (data_dir / "storage").is_dir()

    def test_failure_exit_code(self, tmp_path: Path) -> None:
        assert main.main(["--data-dir", str(tmp_path), "update", "nothing"]) == 1
