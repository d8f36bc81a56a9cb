"""
JSON File Storage Implementation

One file per key under a data directory: <data_dir>/<key>.json.

DESIGN DECISION: Writes go to a temporary file in the same directory and
are moved into place with os.replace. A failed write therefore never leaves
a half-written document behind; readers see either the old payload or the
new one.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from worktracker.services.storage.interface import (
    StorageBackend,
    StorageConnectionError,
    StorageDecodeError,
    StorageError,
)


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")
_SUFFIX = ".json"


class JsonFileBackend(StorageBackend):
    """File-per-key implementation of StorageBackend."""

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir).expanduser()
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageConnectionError(
                f"Cannot create data directory {self._data_dir}: {e}"
            )

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{_SUFFIX}"

    def read(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise StorageDecodeError(f"{key} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def write(self, key: str, payload: str) -> None:
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to write {key}: {e}")

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}")

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self._data_dir.glob(f"*{_SUFFIX}"))
