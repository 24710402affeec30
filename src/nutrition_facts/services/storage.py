"""Key-value persistence with a tagged schema envelope."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

API_CONFIG_KEY = "api-config"
HISTORY_KEY = "meal-history"
SAVED_DISHES_KEY = "saved-dishes"
USER_PROFILE_KEY = "user-profile"

SCHEMA_VERSION = 1
LEGACY_SCHEMA_VERSION = 0

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Flat string store, one JSON document per key."""

    def read(self, key: str) -> str | None:
        """Return the stored value or None when the key is absent."""

    def write(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""


@dataclass(frozen=True)
class StoredBlob:
    """A decoded value with the schema version it was written with."""

    version: int
    data: object


def read_blob(store: KeyValueStore, key: str) -> StoredBlob | None:
    """Decode a stored value, discarding it when it is not valid JSON.

    Values written before the envelope existed come back as version 0.
    """
    raw = store.read(key)
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        discard_blob(store, key, exc)
        return None
    if _is_envelope(payload):
        return StoredBlob(version=int(payload["schemaVersion"]), data=payload["data"])
    return StoredBlob(version=LEGACY_SCHEMA_VERSION, data=payload)


def write_blob(store: KeyValueStore, key: str, data: object) -> None:
    """Serialize a value inside the current schema envelope."""
    envelope = {"schemaVersion": SCHEMA_VERSION, "data": data}
    store.write(key, json.dumps(envelope, ensure_ascii=False))


def discard_blob(store: KeyValueStore, key: str, reason: Exception) -> None:
    """Drop an unreadable value so loading can continue without it."""
    _logger.warning("Discarding corrupt %s: %s", key, reason)
    store.delete(key)


def _is_envelope(payload: object) -> bool:
    return (
        isinstance(payload, dict)
        and isinstance(payload.get("schemaVersion"), int)
        and "data" in payload
    )
