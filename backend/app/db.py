import os
from functools import lru_cache
from typing import Protocol

from supabase import create_client, Client

KV_TABLE = "kv_state"
PAGE_SIZE = 1000  # Supabase row limit per request


class StorageError(Exception):
    """Raised when the storage backend cannot complete a read, write or delete."""


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


@lru_cache(maxsize=1)
def get_client() -> Client:
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


class SupabaseStorage:
    """One kv_state row per (device_id, key)."""

    def __init__(self, db: Client, device_id: str) -> None:
        self.db = db
        self.device_id = device_id

    def get(self, key: str) -> str | None:
        try:
            res = (
                self.db.table(KV_TABLE)
                .select("value")
                .eq("device_id", self.device_id)
                .eq("key", key)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"read {key} failed") from e
        return res.data[0]["value"] if res.data else None

    def set(self, key: str, value: str) -> None:
        try:
            self.db.table(KV_TABLE).upsert(
                {"device_id": self.device_id, "key": key, "value": value},
                on_conflict="device_id,key",
            ).execute()
        except Exception as e:
            raise StorageError(f"write {key} failed") from e

    def delete(self, key: str) -> None:
        try:
            self.db.table(KV_TABLE).delete().eq("device_id", self.device_id).eq("key", key).execute()
        except Exception as e:
            raise StorageError(f"delete {key} failed") from e


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def get_storage(device_id: str) -> KeyValueStorage:
    return SupabaseStorage(get_client(), device_id)


def list_device_ids_with_key(db: Client, key: str) -> list[str]:
    """All device ids holding a row for key, fetched in pages."""
    device_ids: list[str] = []
    offset = 0
    while True:
        res = (
            db.table(KV_TABLE)
            .select("device_id")
            .eq("key", key)
            .order("device_id")
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        batch = res.data or []
        device_ids.extend(row["device_id"] for row in batch)
        if len(batch) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    return device_ids
