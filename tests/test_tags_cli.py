# tests/test_tags_cli.py

"""
CLI tests for `tagger tags ...`, run against a temporary JSON scene file
(see the scene_file fixture in conftest.py).
"""

import json

from tagger.cli.main import cli


def _tags_in_file(path, scene_id, entity_id):
    data = json.loads(path.read_text(encoding="utf-8"))
    raw = next(e for e in data["scenes"][scene_id] if e["id"] == entity_id)
    return raw["flags"].get("tagger", {}).get("tags")


def test_get_prints_tags(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "get", "tok-1"])

    assert result.exit_code == 0
    assert result.output.strip() == "enemy, goblin_1"


def test_find_in_active_scene(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "find", "--tags", "goblin*", "--case-insensitive"])

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "tok-1\ttoken\tenemy, goblin_1",
        "tok-2\ttoken\tenemy, Goblin_2, boss",
    ]


def test_find_all_scenes_groups_by_scene(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "find", "-t", "enemy", "--all-scenes", "--ignore", "tok-2"])

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "[scene-1]",
        "tok-1\ttoken\tenemy, goblin_1",
        "[scene-2]",
        "tok-3\ttoken\tenemy, orc",
    ]


def test_find_unknown_scene_exits_with_error(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "find", "-t", "enemy", "--scene", "nope"])

    assert result.exit_code == 1
    assert "could not find scene with id 'nope'" in result.output


def test_conflicting_options_exit_with_error(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "find", "-t", "enemy", "--match-any", "--match-exactly"])

    assert result.exit_code == 1
    assert "mutually exclusive" in result.output


def test_unknown_entity(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "get", "ghost"])

    assert result.exit_code == 1
    assert "unknown entity id 'ghost'" in result.output


def test_has(cli_runner, scene_file) -> None:
    yes = cli_runner.invoke(cli, ["tags", "has", "til-1", "-t", "door, locked"])
    no = cli_runner.invoke(cli, ["tags", "has", "til-1", "-t", "door", "--match-exactly"])

    assert yes.output.strip() == "true"
    assert no.output.strip() == "false"


def test_add_is_persisted(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "add", "tok-1", "tok-3", "-t", "marked", "--verbose"])

    assert result.exit_code == 0
    assert "Updated 2 entities." in result.output
    assert _tags_in_file(scene_file, "scene-1", "tok-1") == ["enemy", "goblin_1", "marked"]
    assert _tags_in_file(scene_file, "scene-2", "tok-3") == ["enemy", "orc", "marked"]


def test_clear_unsets_the_flag(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "clear", "til-1"])

    assert result.exit_code == 0
    assert _tags_in_file(scene_file, "scene-1", "til-1") is None


def test_toggle_and_remove(cli_runner, scene_file) -> None:
    cli_runner.invoke(cli, ["tags", "toggle", "til-1", "-t", "locked, trapped"])
    assert _tags_in_file(scene_file, "scene-1", "til-1") == ["door", "trapped"]

    cli_runner.invoke(cli, ["tags", "remove", "til-1", "-t", "door, trapped"])
    assert _tags_in_file(scene_file, "scene-1", "til-1") is None


def test_create_applies_rules(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(
        cli,
        ["tags", "create", "--scene", "scene-1", "--kind", "token", "--id", "tok-9", "-t", "enemy, goblin_{#}"],
    )

    assert result.exit_code == 0
    assert result.output.strip() == "enemy, goblin_2"
    assert _tags_in_file(scene_file, "scene-1", "tok-9") == ["enemy", "goblin_2"]


def test_create_without_rules(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(
        cli,
        ["tags", "create", "--scene", "scene-1", "--kind", "tile", "--id", "til-9", "-t", "door_{#}", "--no-rules"],
    )

    assert result.exit_code == 0
    assert _tags_in_file(scene_file, "scene-1", "til-9") == ["door_{#}"]


def test_create_in_new_scene(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(
        cli,
        ["tags", "create", "--scene", "scene-3", "--kind", "note", "--id", "n-1", "-t", "clue_{#}"],
    )

    assert result.exit_code == 0
    assert _tags_in_file(scene_file, "scene-3", "n-1") == ["clue_1"]


def test_apply_rules_command(cli_runner, scene_file) -> None:
    cli_runner.invoke(cli, ["tags", "set", "wal-1", "-t", "wall_{#}"])

    result = cli_runner.invoke(cli, ["tags", "apply-rules", "wal-1"])

    assert result.exit_code == 0
    assert _tags_in_file(scene_file, "scene-1", "wal-1") == ["wall_1"]


def test_find_with_empty_tags_exits_with_error(cli_runner, scene_file) -> None:
    result = cli_runner.invoke(cli, ["tags", "find", "-t", " , "])

    assert result.exit_code == 1
    assert "tags must contain at least one tag" in result.output
