"""Release artifact storage on the local filesystem.

Layout: ``<storage_root>/<plugin_id>/<release_id>/<filename>``. Every path
component is checked so that nothing is read or written outside the root.
"""

import hashlib
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..core.exceptions import FileNotFoundInStorageError, FileTooLargeError, InvalidFilenameError
from ..core.logging import get_logger


@dataclass
class StoredFile:
    path: Path
    size: int
    sha256: str


def _safe_component(value: str | None) -> str:
    if (
        not value
        or value in (".", "..")
        or "/" in value
        or "\\" in value
        or "\x00" in value
    ):
        raise InvalidFilenameError(value)
    return value


class ReleaseFileStorage:
    def __init__(self, root: str | Path, max_size: int, logger: logging.Logger | None = None) -> None:
        self.root = Path(root).resolve()
        self.max_size = max_size
        self.logger = logger or get_logger(__name__)

    def plugin_dir(self, plugin_id: str) -> Path:
        return self.root / _safe_component(plugin_id)

    def release_dir(self, plugin_id: str, release_id: str) -> Path:
        return self.plugin_dir(plugin_id) / _safe_component(release_id)

    def save_file(self, plugin_id: str, release_id: str, filename: str, content: bytes) -> StoredFile:
        """Write the file, creating plugin/release directories as needed."""
        name = _safe_component(filename)
        if len(content) > self.max_size:
            raise FileTooLargeError(name, len(content), self.max_size)

        directory = self.release_dir(plugin_id, release_id)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(content)

        digest = hashlib.sha256(content).hexdigest()
        self.logger.info(
            "Release file stored",
            extra={"plugin_id": plugin_id, "release_id": release_id, "file_name": name, "size": len(content)},
        )
        return StoredFile(path=path, size=len(content), sha256=digest)

    def get_file_path(self, plugin_id: str, release_id: str, filename: str) -> Path:
        path = self.release_dir(plugin_id, release_id) / _safe_component(filename)
        if not path.is_file():
            raise FileNotFoundInStorageError(f"{plugin_id}/{release_id}/{filename}")
        return path

    def open_file(self, plugin_id: str, release_id: str, filename: str) -> bytes:
        return self.get_file_path(plugin_id, release_id, filename).read_bytes()

    def list_plugin_files(self, plugin_id: str) -> list[str]:
        """All files under the plugin directory, relative to it, sorted."""
        directory = self.plugin_dir(plugin_id)
        if not directory.is_dir():
            return []
        return sorted(p.relative_to(directory).as_posix() for p in directory.rglob("*") if p.is_file())

    def delete_release_files(self, plugin_id: str, release_id: str) -> bool:
        """Remove one release directory. Returns False if it did not exist."""
        directory = self.release_dir(plugin_id, release_id)
        if not directory.is_dir():
            return False
        shutil.rmtree(directory)
        self.logger.info("Release files deleted", extra={"plugin_id": plugin_id, "release_id": release_id})
        return True

    def delete_plugin_files(self, plugin_id: str) -> bool:
        """Remove the plugin directory and every release in it."""
        directory = self.plugin_dir(plugin_id)
        if not directory.is_dir():
            return False
        shutil.rmtree(directory)
        self.logger.info("Plugin files deleted", extra={"plugin_id": plugin_id})
        return True
