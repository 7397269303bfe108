"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from backup_manager.config import Config
    from backup_manager.core.backup import BackupManager


@dataclass
class AppContext:
    """Central service container handed to the shell."""

    config: Config
    backup_manager: BackupManager
