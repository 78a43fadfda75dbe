"""
Bundled host adapters.

    from tagger.stores import InMemoryTagStore, JsonSceneStore, open_store

The Supabase store is imported lazily by open_store() so that the JSON and
in-memory stores work without the Supabase SDK configured.
"""

from pathlib import Path
from typing import Optional

from tagger import config

from .json_store import JsonSceneStore
from .memory import InMemoryTagStore, PlaceableObject, SceneEntity


def open_store(store_path: Optional[Path] = None) -> InMemoryTagStore:
    """
    Open the store selected by TAGGER_BACKEND.

    "json"     → JsonSceneStore at store_path (or TAGGER_SCENES_PATH)
    "supabase" → SupabaseTagStore built from SUPABASE_URL / SUPABASE_KEY
    """
    if config.backend() == "supabase":
        from .supabase_store import SupabaseTagStore

        return SupabaseTagStore.from_env()

    store = JsonSceneStore.load(store_path or config.scenes_path())
    store.active_scene = config.active_scene() or store.active_scene
    return store


__all__ = [
    "InMemoryTagStore",
    "JsonSceneStore",
    "PlaceableObject",
    "SceneEntity",
    "open_store",
]
