# tagger/config.py

import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load environment variables from the .env file into the system environment
load_dotenv()

DEFAULT_BACKEND = "json"
DEFAULT_SCENES_PATH = Path("tagger/artifacts/scenes.json")
DEFAULT_SUPABASE_TABLE = "scene_entities"

BACKENDS = ("json", "supabase")


# Accessors read the environment at call time so tests can monkeypatch it.
def backend() -> str:
    value = os.getenv("TAGGER_BACKEND", DEFAULT_BACKEND).strip().lower()
    if value not in BACKENDS:
        raise RuntimeError(
            f"Unknown TAGGER_BACKEND {value!r}. Supported: {', '.join(BACKENDS)}."
        )
    return value


def scenes_path() -> Path:
    return Path(os.getenv("TAGGER_SCENES_PATH", str(DEFAULT_SCENES_PATH)))


def active_scene() -> Optional[str]:
    return os.getenv("TAGGER_ACTIVE_SCENE") or None


def supabase_table() -> str:
    return os.getenv("TAGGER_SUPABASE_TABLE", DEFAULT_SUPABASE_TABLE)


def supabase_credentials() -> Tuple[str, str]:
    # Retrieve the Supabase project URL and key from the environment
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")

    if not url or not key:
        raise RuntimeError(
            "Supabase credentials not found. Ensure SUPABASE_URL and SUPABASE_KEY "
            "are set in your environment or .env file."
        )
    return url, key
