"""Interactive command shell — maps command words to handlers on BackupManager."""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path
from typing import Callable, TextIO

from backup_manager.core.backup import ORIGINAL_SOURCE, BackupManager, OperationResult
from backup_manager.models.backup_record import BackupRecord
from backup_manager.utils import format_timestamp, pad

DirectoryPicker = Callable[[str], "Path | None"]
Handler = Callable[[list[str]], bool]

# (command, arguments, description) in display order
_HELP = [
    ("create", "<name> [<path>]", "Creates a new backup with name <name> and source path <path>"),
    ("update", "<name>", "Updates all files of backup with name <name>"),
    ("restore", "<name> [<target>]", f"Restores backup <name> to dir <target> ({ORIGINAL_SOURCE} = original source)"),
    ("delete", "<name>", "Deletes a backup with name <name>"),
    ("find", "<name>", "Shows details of backup <name>"),
    ("list", "none", "Lists all available backups"),
    ("help", "none", "Display this help message"),
    ("exit", "none", "Exits the program"),
]

_LIST_COLUMNS = (("Name", 15), ("Source", 40), ("Creation date", 25), ("Last modification date", 25))


class BackupShell:
    """
    Line-oriented front end.

    Each handler takes the argument list and returns False to end the loop.
    Paths left out of create/restore are asked for through *picker*.
    """

    def __init__(
        self,
        manager: BackupManager,
        picker: DirectoryPicker | None = None,
        out: TextIO | None = None,
    ) -> None:
        self._manager = manager
        self._picker = picker
        self._out = out
        self.last_failed = False
        self._commands: dict[str, Handler] = {
            "create": self._cmd_create,
            "update": self._cmd_update,
            "restore": self._cmd_restore,
            "delete": self._cmd_delete,
            "find": self._cmd_find,
            "list": self._cmd_list,
            "help": self._cmd_help,
            "exit": self._cmd_exit,
        }

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._commands)

    def _write(self, text: str = "") -> None:
        print(text, file=self._out)

    def _error(self, text: str) -> None:
        self.last_failed = True
        self._write(text)

    # ── Loop ──

    def run(self, read_line: Callable[[str], str] = input) -> None:
        self._write("MRKBackupManager")
        while True:
            try:
                line = read_line("\n>")
            except (EOFError, KeyboardInterrupt):
                break
            if not self.execute_line(line):
                break
        self._write("Exiting...")

    def execute_line(self, line: str) -> bool:
        """Run one command line. Returns False when the shell should stop."""
        try:
            words = shlex.split(line)
        except ValueError as e:
            self._error(f"invalid command line: {e}")
            return True
        if not words:
            return True
        return self.execute(words[0], words[1:])

    def execute(self, command: str, args: list[str]) -> bool:
        self.last_failed = False
        handler = self._commands.get(command.lower())
        if handler is None:
            self._error("Command not found")
            return True
        return handler(args)

    # ── Helpers ──

    def _arg(self, args: list[str], index: int) -> str:
        return args[index].strip() if len(args) > index else ""

    def _require_backup(self, args: list[str]) -> BackupRecord | None:
        name = self._arg(args, 0)
        if not name:
            self._error("name cannot be empty")
            return None
        record = self._manager.find_backup(name)
        if record is None:
            self._error(f"backup {name} doesn't exist")
        return record

    def _ask_directory(self, title: str) -> Path | None:
        if self._picker is None:
            return None
        return self._picker(title)

    def _report(self, result: OperationResult, done: str) -> None:
        if result.success:
            self._write(done)
            return
        self._error(f"error ({result.error_kind}): {result.error}")
        for path, message in result.failures[1:]:
            self._write(f"  {path}: {message}")

    # ── Commands ──

    def _cmd_create(self, args: list[str]) -> bool:
        name = self._arg(args, 0)
        if not name:
            self._error("name cannot be empty")
            return True
        if self._manager.find_backup(name) is not None:
            self._error(f"backup {name} already exists")
            return True

        source = self._arg(args, 1)
        if not source:
            picked = self._ask_directory(f"Select source directory for {name}")
            if picked is None:
                self._error("invalid src path")
                return True
            source = str(picked)

        result = self._manager.create_backup(name, source)
        self._report(result, f"backup {name} was created")
        return True

    def _cmd_update(self, args: list[str]) -> bool:
        record = self._require_backup(args)
        if record is not None:
            self._report(self._manager.update_backup(record), f"backup {record.name} was updated")
        return True

    def _cmd_delete(self, args: list[str]) -> bool:
        record = self._require_backup(args)
        if record is not None:
            self._report(self._manager.delete_backup(record), f"backup {record.name} was deleted")
        return True

    def _cmd_restore(self, args: list[str]) -> bool:
        record = self._require_backup(args)
        if record is None:
            return True

        target = self._arg(args, 1)
        if not target:
            picked = self._ask_directory(f"Select restore target for {record.name}")
            if picked is None:
                self._error("invalid target path")
                return True
            target = str(picked)
        if target == ORIGINAL_SOURCE:
            target = record.source

        result = self._manager.restore_backup(record, target)
        self._report(result, f"backup {record.name} was restored to {target}")
        return True

    def _cmd_find(self, args: list[str]) -> bool:
        record = self._require_backup(args)
        if record is not None:
            self._write(f"name:          {record.name}")
            self._write(f"source:        {record.source}")
            self._write(f"location:      {record.location}")
            self._write(f"created:       {format_timestamp(record.created_at)}")
            self._write(f"last modified: {format_timestamp(record.last_modified)}")
        return True

    def _cmd_list(self, args: list[str]) -> bool:
        width = shutil.get_terminal_size().columns
        self._write("".join(pad(title, w) for title, w in _LIST_COLUMNS))
        self._write("-" * width)
        for record in self._manager.list_backups():
            values = (
                record.name,
                record.source,
                format_timestamp(record.created_at),
                format_timestamp(record.last_modified),
            )
            self._write("".join(pad(v, w) for v, (_, w) in zip(values, _LIST_COLUMNS)))
        return True

    def _cmd_help(self, args: list[str]) -> bool:
        self._write(pad("Command", 10) + pad("Arguments", 20) + "Description")
        self._write("-" * shutil.get_terminal_size().columns)
        for command, arguments, description in _HELP:
            self._write(pad(command, 10) + pad(arguments, 20) + description)
        return True

    def _cmd_exit(self, args: list[str]) -> bool:
        return False
