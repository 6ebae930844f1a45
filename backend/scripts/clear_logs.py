#!/usr/bin/env python3
"""Delete every file in the log directory.

Usage:
    python scripts/clear_logs.py [--log-dir PATH]
"""

import argparse
from pathlib import Path

repo_root = Path(__file__).resolve().parents[2]


def clear_log_dir(log_dir: Path) -> int:
    """Remove plain files directly under ``log_dir``; return how many were removed."""
    removed = 0
    for entry in log_dir.iterdir():
        if entry.is_file():
            entry.unlink()
            removed += 1
    return removed


def main():
    parser = argparse.ArgumentParser(description="Clear Plugstore log history")
    parser.add_argument("--log-dir", type=Path, default=repo_root / "logs", help="Log directory")
    args = parser.parse_args()

    if not args.log_dir.is_dir():
        print(f"`{args.log_dir}` directory not found")
        return

    removed = clear_log_dir(args.log_dir)
    print(f"Log history cleared ({removed} files)")


if __name__ == "__main__":
    main()
