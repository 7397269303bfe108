"""Application entry point — wires services and runs the backup shell.

Usage:
    backup-manager                         interactive shell
    backup-manager <command> [args ...]    run a single shell command

Examples:
    backup-manager create docs ~/docs
    backup-manager restore docs '$src'
    backup-manager --data-dir /mnt/e/mrkbackupmanager list
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from backup_manager.config import Config, get_config
from backup_manager.context import AppContext
from backup_manager.core.backup import BackupManager
from backup_manager.logger import setup_logger
from backup_manager.shell import BackupShell
from backup_manager.ui.dir_picker import pick_directory


def create_context(data_dir: Path | None = None) -> AppContext:
    """Wire all services and return an AppContext."""
    config = Config(data_dir) if data_dir else get_config()

    # Logger
    setup_logger(config.data_dir / "logs", level=config.log_level)

    backup_manager = BackupManager(config)
    return AppContext(config=config, backup_manager=backup_manager)


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    parser = argparse.ArgumentParser(
        prog="backup-manager",
        description="Local file-tree backup manager.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding config.json and logs (default: ~/Documents/BackupManager)",
    )
    parser.add_argument("command", nargs="?", help="Shell command to run once (omit for interactive mode)")
    parser.add_argument("args", nargs="*", help="Arguments for the command")
    args = parser.parse_args(argv)

    ctx = create_context(args.data_dir)
    shell = BackupShell(ctx.backup_manager, picker=pick_directory)

    if args.command:
        shell.execute(args.command, args.args)
        return 1 if shell.last_failed else 0

    shell.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
