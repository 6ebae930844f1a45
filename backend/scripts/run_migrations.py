#!/usr/bin/env python3
"""
Database migration runner for the Plugstore backend.

Thin wrapper around the Alembic CLI that checks the database configuration first.
"""

import argparse
import subprocess
import sys
from pathlib import Path

# Add the src directory to the path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))


def run_alembic(*args: str) -> str:
    """Run an alembic command from the backend directory and return its output."""
    cmd = [sys.executable, "-m", "alembic", *args]
    try:
        result = subprocess.run(cmd, cwd=project_root, capture_output=True, text=True, check=True)
        return result.stdout
    except subprocess.CalledProcessError as e:
        print(f"Error running command: {' '.join(cmd)}")
        print(f"Error output: {e.stderr}")
        raise


def check_database_url():
    """Check if database URL is configured."""
    try:
        from plugstore.core.config import get_settings_instance
        from plugstore.core.database import _describe_url

        settings = get_settings_instance()
        print(f"Database: {_describe_url(settings.database_url)}")
    except Exception as e:
        print(f"Error checking database configuration: {e}")
        print("Please set PLUGSTORE_DATABASE_URL environment variable or configure it in .env file")
        sys.exit(1)


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Plugstore Database Migration Tool")
    parser.add_argument(
        "command",
        choices=["create", "upgrade", "downgrade", "history", "current", "check"],
        help="Migration command to run",
    )
    parser.add_argument("--message", "-m", help="Migration message (for create command)")
    parser.add_argument("--revision", "-r", help="Target revision (for upgrade/downgrade)")

    args = parser.parse_args()
    check_database_url()

    try:
        if args.command == "create":
            if not args.message:
                print("Error: Migration message is required for create command")
                sys.exit(1)
            print(run_alembic("revision", "--autogenerate", "-m", args.message))
        elif args.command == "upgrade":
            print(run_alembic("upgrade", args.revision or "head"))
        elif args.command == "downgrade":
            if not args.revision:
                print("Error: Revision is required for downgrade command")
                sys.exit(1)
            print(run_alembic("downgrade", args.revision))
        elif args.command == "history":
            print(run_alembic("history", "--verbose"))
        elif args.command == "current":
            print(run_alembic("current"))
        elif args.command == "check":
            print("Database configuration is valid")

        print("Migration command completed successfully")

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
