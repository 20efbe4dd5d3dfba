"""JSON-file key-value store: one file per key inside a directory."""

import json
import os
import re
from pathlib import Path

from shopping.domain import logger
from shopping.storage.port import KeyValueStore

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStore(KeyValueStore):
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE.sub('_', key)}.json"

    def load(self, key: str) -> dict | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            # Unreadable state is treated as absent
            logger.warning("Discarding unreadable stored state", key=key, path=str(path))
            return None

    def save(self, key: str, blob: dict) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(blob), encoding="utf-8")
        os.replace(tmp_path, path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
