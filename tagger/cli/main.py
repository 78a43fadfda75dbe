"""
Root entrypoint for the tagger CLI.

This module defines the top-level `tagger` command and mounts sub-apps from
other modules under tagger/cli/:

    • tagger/cli/tags_cli.py  →  `tagger tags ...`

Configuration comes from the environment, loaded from a .env file when
present (see tagger/config.py).
"""

from dotenv import load_dotenv
import typer

from .tags_cli import tags_app

# Load environment variables
load_dotenv()

# ---------------------------------------------------------------------------
# Root CLI application
# ---------------------------------------------------------------------------
cli = typer.Typer(
    help=(
        "Tag scene entities and find them again.\n\n"
        "Tags are free-form labels stored on placeable entities (tokens, "
        "tiles, walls, ...). Queries support '*' wildcards, match-any and "
        "match-exact semantics, and searching every scene at once.\n\n"
        "New entities may use tag rules: '{#}' becomes the next free number "
        "in the scene and '{id}' a random unique id."
    )
)

# ---------------------------------------------------------------------------
# Register sub-applications
# ---------------------------------------------------------------------------
cli.add_typer(tags_app, name="tags")

# ---------------------------------------------------------------------------
# Entry point for `python -m tagger.cli.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    cli()
