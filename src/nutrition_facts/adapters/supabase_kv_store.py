"""Supabase-backed key-value store."""

from dataclasses import dataclass

from supabase import Client

from nutrition_facts.services.storage import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Supabase implementation storing one row per key."""

    client: Client
    table: str = "kv_store"

    def read(self, key: str) -> str | None:
        """Return the stored value for a key."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        """Insert or replace the value for a key."""
        self.client.table(self.table).upsert({"key": key, "value": value}).execute()

    def delete(self, key: str) -> None:
        """Delete the row for a key."""
        self.client.table(self.table).delete().eq("key", key).execute()
