"""Local directory used as object storage for uploaded files."""

import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class FileStorage:
    """Stores uploaded files under ``<millis>-<name>`` keys."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Keys are flat; refuse anything that would leave the root
        name = Path(key).name
        if not name or name != key:
            raise ValueError(f"Invalid file key: {key!r}")
        return self._root / name

    def save(self, filename: str, content: bytes) -> str:
        """Write a file and return its storage key."""
        key = f"{int(time.time() * 1000)}-{Path(filename).name}"
        self._path(key).write_bytes(content)
        logger.info(f"Saved file {key} ({len(content)} bytes)")
        return key

    def read(self, key: str) -> bytes:
        """Read a stored file.

        Raises:
            FileNotFoundError: If no file exists under the key.
        """
        return self._path(key).read_bytes()

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).is_file()
        except ValueError:
            return False

    def delete(self, key: str) -> None:
        """Remove a stored file if present."""
        self._path(key).unlink(missing_ok=True)
