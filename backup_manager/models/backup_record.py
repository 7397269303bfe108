"""Backup record model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class BackupRecord:
    """Persisted metadata for one managed backup."""

    name: str
    source: str  # Directory the backup was taken from
    location: str = ""  # Physical root under the storage root, assigned at creation
    created_at: datetime = field(default_factory=datetime.now)
    last_modified: datetime = field(default_factory=datetime.now)
