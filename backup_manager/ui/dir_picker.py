"""Directory picker — native folder dialog used when a path is omitted."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_app = None  # Keeps the QApplication alive between prompts


def pick_directory(title: str, start_dir: str = "") -> Path | None:
    """Show a folder dialog. Returns the chosen directory, or None if cancelled."""
    global _app
    from PySide6.QtWidgets import QApplication, QFileDialog

    _app = QApplication.instance() or QApplication(sys.argv[:1])
    path = QFileDialog.getExistingDirectory(None, title, start_dir)
    if not path:
        logger.debug(f"Directory prompt cancelled: {title}")
        return None
    return Path(path)
