"""Supabase-backed key/value store."""

from dataclasses import dataclass

from supabase import Client

from matchmaker.services.session_store import KeyValueStore, StoreUnavailableError

_TABLE = "kv_store"


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Stores values in a two-column Supabase table (key, value)."""

    client: Client
    table: str = _TABLE

    def get(self, key: str) -> str | None:
        """Return the value stored under key, if any."""
        try:
            response = (
                self.client.table(self.table)
                .select("key, value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to read {key}") from exc
        if not response.data:
            return None
        return response.data[0]["value"]

    def set(self, key: str, value: str) -> None:
        """Insert or replace the value stored under key."""
        try:
            self.client.table(self.table).upsert(
                {"key": key, "value": value}, on_conflict="key"
            ).execute()
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to write {key}") from exc

    def delete(self, key: str) -> None:
        """Remove key if present."""
        try:
            self.client.table(self.table).delete().eq("key", key).execute()
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to delete {key}") from exc

    def keys(self, pattern: str) -> list[str]:
        """Return keys matching a glob pattern."""
        like = pattern.replace("*", "%")
        try:
            response = (
                self.client.table(self.table).select("key").like("key", like).execute()
            )
        except Exception as exc:
            raise StoreUnavailableError(f"Failed to list keys for {pattern}") from exc
        return sorted(row["key"] for row in response.data or [])
