"""
JSON key-value file area.

One JSON document per key, written atomically via temp file and rename.
Keys are validated so they can never address a path outside the directory.

Dependencies: json, pathlib
System role: Durable storage for persona profiles
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def is_valid_key(key: str) -> bool:
    return bool(_KEY_PATTERN.match(key)) and key not in {".", ".."}


class JsonFileStore:
    """Directory-backed JSON document store."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    def read(self, key: str) -> dict[str, Any] | None:
        """
        Read the document stored under key.

        Returns:
            dict | None: Parsed document, None when absent

        Raises:
            ValueError: If the key is invalid
        """
        path = self._path(key)
        if not path.is_file():
            return None
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def write(self, key: str, document: dict[str, Any]) -> None:
        """Atomically replace the document stored under key."""
        path = self._path(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        """Delete the document under key. Returns False if it did not exist."""
        path = self._path(key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def keys(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            path.stem
            for path in self._directory.glob("*.json")
            if is_valid_key(path.stem)
        )

    def _path(self, key: str) -> Path:
        if not is_valid_key(key):
            raise ValueError(f"Invalid key: {key!r}")
        return self._directory / f"{key}.json"
