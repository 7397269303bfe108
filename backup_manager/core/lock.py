"""Per-backup lock file guarding against concurrent writers."""

from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from loguru import logger

from backup_manager.core.errors import BackupIOError, BackupLockedError

LOCK_FILENAME = ".__mrk_lock"


@contextmanager
def backup_lock(location: Path, enabled: bool = True) -> Iterator[None]:
    """Hold ``{location}/.__mrk_lock`` for the duration of the block.

    The lock is an exclusively created file holding the owner's PID; a stale
    lock left by a crashed process has to be removed by hand.
    """
    if not enabled:
        yield
        return

    lock_path = Path(location) / LOCK_FILENAME
    try:
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError as e:
        raise BackupLockedError(f"Backup is busy (lock held: {lock_path})") from e
    except OSError as e:
        raise BackupIOError(f"Failed to create lock {lock_path}: {e}") from e

    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(f"{os.getpid()}\n{datetime.now().isoformat()}\n")
    logger.debug(f"Acquired lock {lock_path}")

    try:
        yield
    finally:
        # The location may be gone after a delete
        lock_path.unlink(missing_ok=True)
