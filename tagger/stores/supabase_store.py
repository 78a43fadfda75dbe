"""
Supabase-backed scene store.

Entities live as rows in one Supabase table (default "scene_entities"):

    id        text primary key
    scene_id  text
    kind      text
    name      text
    tags      text[] null      — null when the entity has no tags

Reads work on the snapshot taken by the last list_entities_in_scope() call
for that scene. Writes go straight to Supabase and only update the snapshot
once Supabase has acknowledged them, so a failed write never leaves the
local view ahead of the database.

A scene exists as long as at least one row references it; an unknown or
empty scene raises ScopeNotFound.

The store accepts `client: Any` because the real Supabase SDK does not
implement a Protocol we can check, and test doubles vary in structure. Every
response goes through _extract_data(), which normalizes SDK objects and
dict-style test responses alike.
"""

import asyncio
from typing import Any, Dict, List, Optional, cast

from postgrest.exceptions import APIError

from tagger import config
from tagger.errors import InvalidArgument, ScopeNotFound, StorageFailure
from tagger.stores.memory import InMemoryTagStore, SceneEntity
from tagger.types import FLAG_NAME, MODULE_NAME


# ---------------------------------------------------------------------------
# Helper: normalize Supabase responses
# ---------------------------------------------------------------------------
def _extract_data(resp: Any) -> List[Dict[str, Any]]:
    """
    Normalize Supabase responses across real SDK objects and dict-style
    test doubles. Always returns a list of row dictionaries.

    Raises StorageFailure on any Supabase error.
    """
    if isinstance(resp, dict):
        status = resp.get("status", 200)
        if status >= 400:
            raise StorageFailure(f"Supabase error: {resp}")
        return cast(List[Dict[str, Any]], resp.get("data") or [])

    error = getattr(resp, "error", None)
    if error:
        raise StorageFailure(f"Supabase error: {error}")

    data = getattr(resp, "data", None)
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


class SupabaseTagStore(InMemoryTagStore):
    """
    Scene store reading from and writing to a Supabase table.

    Parameters
    ----------
    client : Any
        A Supabase SDK client (from supabase.create_client) or a test double
        exposing table(...).select/update/eq/execute.
    table : str
        Table holding one row per entity.
    active_scene : str, optional
        The scene searched when a query names none.
    """

    def __init__(self, client: Any, table: str = config.DEFAULT_SUPABASE_TABLE, active_scene: Optional[str] = None) -> None:
        super().__init__(active_scene=active_scene)
        if client is None:
            raise RuntimeError("Supabase client is not configured")
        self.client = client
        self.table = table

    @classmethod
    def from_env(cls) -> "SupabaseTagStore":
        """
        Factory constructor for production usage.

        Reads SUPABASE_URL / SUPABASE_KEY (populated via python-dotenv) and
        creates the official SDK client.
        """
        from supabase import create_client

        url, key = config.supabase_credentials()
        return cls(
            create_client(url, key),
            table=config.supabase_table(),
            active_scene=config.active_scene(),
        )

    # -----------------------------------------------------------------------
    # Snapshot
    # -----------------------------------------------------------------------
    def _sync_row(self, row: Dict[str, Any]) -> SceneEntity:
        """Create or refresh the cached entity for a row, keeping its identity."""
        entity = self._by_id.get(row["id"])
        if entity is None:
            entity = self.add_entity(
                SceneEntity(
                    id=row["id"],
                    kind=row.get("kind", "token"),
                    scene_id=row["scene_id"],
                    name=row.get("name") or "",
                )
            )

        tags = row.get("tags")
        if tags:
            entity.flags[MODULE_NAME] = {FLAG_NAME: list(tags)}
        else:
            entity.flags.pop(MODULE_NAME, None)
        return entity

    def list_entities_in_scope(self, scope_id: str) -> List[SceneEntity]:
        if not isinstance(scope_id, str):
            raise InvalidArgument("list_entities_in_scope", "scope_id must be a string")

        resp = self.client.table(self.table).select("*").eq("scene_id", scope_id).execute()
        rows = _extract_data(resp)
        if not rows:
            raise ScopeNotFound("list_entities_in_scope", scope_id)

        for row in rows:
            self._sync_row(row)
        return super().list_entities_in_scope(scope_id)

    def list_scope_ids(self) -> List[str]:
        resp = self.client.table(self.table).select("scene_id").execute()
        # dict preserves first-seen order
        return list(dict.fromkeys(row["scene_id"] for row in _extract_data(resp)))

    def resolve_entity_handle(self, raw: Any) -> SceneEntity:
        if isinstance(raw, str) and raw not in self._by_id:
            resp = self.client.table(self.table).select("*").eq("id", raw).execute()
            rows = _extract_data(resp)
            if not rows:
                raise InvalidArgument("resolve_entity_handle", f"unknown entity id {raw!r}")
            return self._sync_row(rows[0])
        return super().resolve_entity_handle(raw)

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------
    def _update_row(self, entity: SceneEntity, tags: Optional[List[str]]) -> None:
        try:
            resp = self.client.table(self.table).update({"tags": tags}).eq("id", entity.id).execute()
        except APIError as e:
            # The SDK raises instead of returning an error response.
            raise StorageFailure(f"write: Supabase rejected update for {entity.id!r}: {e}") from e
        _extract_data(resp)

    async def write_flag(self, entity: SceneEntity, tags: List[str]) -> None:
        await asyncio.to_thread(self._update_row, entity, list(tags))
        entity.flags[MODULE_NAME] = {FLAG_NAME: list(tags)}

    async def clear_flag(self, entity: SceneEntity) -> None:
        await asyncio.to_thread(self._update_row, entity, None)
        entity.flags.pop(MODULE_NAME, None)
