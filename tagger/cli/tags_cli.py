"""
Command-line interface for reading, querying, and editing tags.

This module defines the `tags` command group for the Typer-based CLI:

    tagger tags get tok-1
    tagger tags find --tags "door*" --case-insensitive --all-scenes
    tagger tags has tok-1 --tags "enemy, goblin"
    tagger tags add tok-1 tok-2 --tags "enemy"
    tagger tags toggle tok-1 --tags "hidden"
    tagger tags clear tok-1
    tagger tags apply-rules tok-1 tok-2
    tagger tags create --scene scene-1 --kind token --id tok-9 --tags "goblin_{#}"

Every command opens the store selected by TAGGER_BACKEND (see
tagger/config.py). With the default json backend, --store-path overrides
TAGGER_SCENES_PATH.

Commands stay thin: they parse options, delegate to the Tagger facade, and
print. Errors from the tagger error family are printed and exit with code 1.
"""

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional

import typer

from tagger.errors import TaggerError
from tagger.logging_utils import log_debug, log_verbose
from tagger.stores import JsonSceneStore, SceneEntity, open_store
from tagger.tagger import Tagger
from tagger.types import FLAG_NAME, MODULE_NAME

# ---------------------------------------------------------------------------
# Sub-application definition
# ---------------------------------------------------------------------------
tags_app = typer.Typer(
    help="Commands for reading, querying, and editing tags on scene entities."
)


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------
def _store_option() -> Any:
    return typer.Option(
        None,
        "--store-path",
        dir_okay=False,
        help="Scene file for the json backend (defaults to TAGGER_SCENES_PATH).",
    )


def _verbose_option() -> Any:
    return typer.Option(False, "--verbose", help="Show high-level progress logs.")


def _debug_option() -> Any:
    return typer.Option(False, "--debug", help="Show full entity payloads.")


def _tags_option() -> Any:
    return typer.Option(..., "--tags", "-t", help="Comma-separated tags.")


def _open(store_path: Optional[Path], verbose: bool) -> Tagger:
    store = open_store(store_path)
    log_verbose(f"Opened store with {len(store.list_scope_ids())} scene(s).", verbose)
    return Tagger(store)


def _run(action: Callable[[], Any]) -> Any:
    """Run a command body, turning tagger errors into a clean exit."""
    try:
        return action()
    except TaggerError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(code=1)


def _describe(tagger: Tagger, hit: Any) -> str:
    entity = tagger.store.resolve_entity_handle(hit)
    return f"{entity.id}\t{entity.kind}\t{', '.join(tagger.get_tags(entity))}"


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@tags_app.command("get")
def get_command(
    entity_id: str = typer.Argument(..., help="Entity id."),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Print an entity's tags, comma-separated."""

    def action() -> None:
        tagger = _open(store_path, verbose)
        tags = tagger.get_tags(entity_id)
        log_debug("Tags", tags, debug)
        typer.echo(", ".join(tags))

    _run(action)


@tags_app.command("find")
def find_command(
    tags: str = _tags_option(),
    match_any: bool = typer.Option(False, "--match-any", help="Match entities with any of the tags."),
    match_exactly: bool = typer.Option(False, "--match-exactly", help="Match entities with exactly these tags."),
    case_insensitive: bool = typer.Option(False, "--case-insensitive", help="Ignore case when matching."),
    all_scenes: bool = typer.Option(False, "--all-scenes", help="Search every scene."),
    scene: Optional[str] = typer.Option(None, "--scene", help="Scene to search (defaults to the active scene)."),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", help="Entity id to leave out; repeatable."),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """
    List entities whose tags match. "*" in a tag matches any run of
    characters; tags are otherwise literal.
    """

    def action() -> None:
        tagger = _open(store_path, verbose)
        result = tagger.get_by_tag(
            tags,
            match_any=match_any,
            match_exactly=match_exactly,
            case_insensitive=case_insensitive,
            all_scenes=all_scenes,
            ignore=list(ignore or []),
            scene_id=scene,
        )

        if isinstance(result, dict):
            log_verbose(f"Found matches in {len(result)} scene(s).", verbose)
            for scene_id, hits in result.items():
                typer.echo(f"[{scene_id}]")
                for hit in hits:
                    typer.echo(_describe(tagger, hit))
            return

        log_verbose(f"Found {len(result)} matching entit{'y' if len(result) == 1 else 'ies'}.", verbose)
        log_debug("Matches", [tagger.store.resolve_entity_handle(hit).to_dict() for hit in result], debug)
        for hit in result:
            typer.echo(_describe(tagger, hit))

    _run(action)


@tags_app.command("has")
def has_command(
    entity_id: str = typer.Argument(..., help="Entity id."),
    tags: str = _tags_option(),
    match_any: bool = typer.Option(False, "--match-any"),
    match_exactly: bool = typer.Option(False, "--match-exactly"),
    case_insensitive: bool = typer.Option(False, "--case-insensitive"),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
) -> None:
    """Print "true" when the entity's tags match, "false" otherwise."""

    def action() -> None:
        tagger = _open(store_path, verbose)
        found = tagger.has_tags(
            entity_id,
            tags,
            match_any=match_any,
            match_exactly=match_exactly,
            case_insensitive=case_insensitive,
        )
        typer.echo("true" if found else "false")

    _run(action)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def _write(method: str, entity_ids: List[str], tags: Optional[str], store_path: Optional[Path], verbose: bool, debug: bool) -> None:
    def action() -> None:
        tagger = _open(store_path, verbose)
        operation = getattr(tagger, method)
        if tags is None:
            asyncio.run(operation(entity_ids))
        else:
            asyncio.run(operation(entity_ids, tags))

        log_verbose(f"Updated {len(entity_ids)} entit{'y' if len(entity_ids) == 1 else 'ies'}.", verbose)
        for entity_id in entity_ids:
            log_debug(entity_id, tagger.get_tags(entity_id), debug)

    _run(action)


@tags_app.command("set")
def set_command(
    entity_ids: List[str] = typer.Argument(..., help="Entity ids."),
    tags: str = _tags_option(),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Replace the entities' tags."""
    _write("set_tags", entity_ids, tags, store_path, verbose, debug)


@tags_app.command("add")
def add_command(
    entity_ids: List[str] = typer.Argument(..., help="Entity ids."),
    tags: str = _tags_option(),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Add tags to the entities."""
    _write("add_tags", entity_ids, tags, store_path, verbose, debug)


@tags_app.command("remove")
def remove_command(
    entity_ids: List[str] = typer.Argument(..., help="Entity ids."),
    tags: str = _tags_option(),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Remove tags from the entities."""
    _write("remove_tags", entity_ids, tags, store_path, verbose, debug)


@tags_app.command("toggle")
def toggle_command(
    entity_ids: List[str] = typer.Argument(..., help="Entity ids."),
    tags: str = _tags_option(),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Remove each tag the entity has and add each one it lacks."""
    _write("toggle_tags", entity_ids, tags, store_path, verbose, debug)


@tags_app.command("clear")
def clear_command(
    entity_ids: List[str] = typer.Argument(..., help="Entity ids."),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Remove every tag from the entities."""
    _write("clear_all_tags", entity_ids, None, store_path, verbose, debug)


@tags_app.command("apply-rules")
def apply_rules_command(
    entity_ids: List[str] = typer.Argument(..., help="Entity ids."),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Expand "{#}" and "{id}" placeholders in the entities' stored tags."""
    _write("apply_tag_rules", entity_ids, None, store_path, verbose, debug)


@tags_app.command("create")
def create_command(
    scene: str = typer.Option(..., "--scene", help="Scene the entity is placed in."),
    kind: str = typer.Option(..., "--kind", help="Placeable kind, e.g. token, tile, wall."),
    entity_id: str = typer.Option(..., "--id", help="New entity id."),
    tags: str = typer.Option("", "--tags", "-t", help="Comma-separated tags; may contain {#} and {id}."),
    name: str = typer.Option("", "--name", help="Display name."),
    no_rules: bool = typer.Option(False, "--no-rules", help="Store placeholders without expanding them."),
    store_path: Optional[Path] = _store_option(),
    verbose: bool = _verbose_option(),
    debug: bool = _debug_option(),
) -> None:
    """Place a new entity in a scene, expanding tag rules first."""

    def action() -> None:
        tagger = _open(store_path, verbose)
        store = tagger.store
        if not isinstance(store, JsonSceneStore):
            typer.echo("Error: create is only supported by the json backend.")
            raise typer.Exit(code=1)

        store.add_scene(scene)
        entity = SceneEntity(id=entity_id, kind=kind, scene_id=scene, name=name)
        resolved = tagger.on_before_create(entity, tags, skip_rules=no_rules, scene_id=scene)

        if resolved:
            entity.flags[MODULE_NAME] = {FLAG_NAME: resolved}
        store.add_entity(entity)
        store.save()

        log_verbose(f"Created {kind} {entity_id} in {scene}.", verbose)
        log_debug("Entity", entity.to_dict(), debug)
        typer.echo(", ".join(resolved))

    _run(action)
