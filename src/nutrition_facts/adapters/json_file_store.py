"""Key-value store kept in a single JSON file."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from nutrition_facts.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Stores every key as a string entry of one JSON object on disk."""

    path: Path

    def read(self, key: str) -> str | None:
        """Return the value stored under a key."""
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        """Store a value and flush the file."""
        entries = self._load()
        entries[key] = value
        self._save(entries)

    def delete(self, key: str) -> None:
        """Remove a key and flush the file."""
        entries = self._load()
        if entries.pop(key, None) is not None:
            self._save(entries)

    def _load(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            entries = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            _logger.warning("Store file %s is unreadable, starting empty", self.path)
            return {}
        return entries if isinstance(entries, dict) else {}

    def _save(self, entries: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(entries, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        tmp_path.replace(self.path)
