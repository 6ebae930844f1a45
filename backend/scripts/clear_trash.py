#!/usr/bin/env python3
"""Empty the log directory and the release file storage tree.

Usage:
    python scripts/clear_trash.py [--log-dir PATH] [--storage-root PATH]
"""

import argparse
import shutil
from pathlib import Path

from clear_logs import clear_log_dir

repo_root = Path(__file__).resolve().parents[2]


def clear_storage(storage_root: Path) -> int:
    """Remove everything under ``storage_root`` but keep the root itself."""
    removed = 0
    for entry in storage_root.iterdir():
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1
    return removed


def main():
    parser = argparse.ArgumentParser(description="Clear Plugstore logs and stored release files")
    parser.add_argument("--log-dir", type=Path, default=repo_root / "logs", help="Log directory")
    parser.add_argument("--storage-root", type=Path, default=repo_root / "storage", help="Release storage root")
    args = parser.parse_args()

    if args.log_dir.is_dir():
        clear_log_dir(args.log_dir)
        print("Log history cleared")

    if args.storage_root.is_dir():
        removed = clear_storage(args.storage_root)
        print(f"Storage cleared ({removed} entries)")


if __name__ == "__main__":
    main()
