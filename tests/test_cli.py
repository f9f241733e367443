"""Tests for the hoi4-preview command line."""

import json
import logging

import pytest
from click.testing import CliRunner

from hoi4_preview.logging_setup import JsonlHandler
from hoi4_preview.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CliRunner isolated from the real home and working directory."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("COLUMNS", "200")
    yield CliRunner()

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, JsonlHandler):
            root.removeHandler(handler)
            handler.close()


class TestCli:
    def test_requires_game_or_mod(self, runner):
        result = runner.invoke(cli, ["overview"])

        assert result.exit_code == 2
        assert "No game or mod directory configured" in result.output

    def test_technology(self, runner, game_files):
        result = runner.invoke(cli, ["--game", str(game_files), "technology", "common/technologies/infantry.txt"])

        assert result.exit_code == 0, result.output
        assert "infantry_folder" in result.output
        assert "support_weapons" in result.output
        assert "3 gui files" in result.output

    def test_technology_progress(self, runner, game_files):
        result = runner.invoke(
            cli, ["--game", str(game_files), "technology", "common/technologies/infantry.txt", "--progress"]
        )

        assert result.exit_code == 0, result.output
        assert "[TechnologyTreeLoader common/technologies/infantry.txt]" in result.output
        assert "loaded" in result.output

    def test_missing_technology_file(self, runner, game_files):
        result = runner.invoke(cli, ["--game", str(game_files), "technology", "common/technologies/nope.txt"])

        assert result.exit_code == 1
        assert "File not found: common/technologies/nope.txt" in result.output

    def test_deps(self, runner, game_files):
        result = runner.invoke(cli, ["--game", str(game_files), "deps", "common/technologies/infantry.txt"])

        assert result.exit_code == 0, result.output
        assert "interface/custom_techtree.gui" in result.output
        assert "missing" in result.output

    def test_overview_without_sprites(self, runner, game_files):
        result = runner.invoke(cli, ["--game", str(game_files), "overview", "--no-sprites"])

        assert result.exit_code == 0, result.output
        assert "Technologies" in result.output
        assert "Missing icons" not in result.output

    def test_overview_with_sprites(self, runner, game_files):
        result = runner.invoke(cli, ["--game", str(game_files), "overview"])

        assert result.exit_code == 0, result.output
        assert "Missing icons" in result.output
        assert "Warnings (3)" in result.output

    def test_sprite(self, runner, game_files):
        result = runner.invoke(
            cli, ["--game", str(game_files), "sprite", "GFX_tiled_window", "--gfx", "interface/technologies.gfx"]
        )

        assert result.exit_code == 0, result.output
        assert "64x64 dds" in result.output
        assert "Border:  8x8" in result.output

    def test_sprite_not_found(self, runner, game_files):
        result = runner.invoke(cli, ["--game", str(game_files), "sprite", "GFX_nothing"])

        assert result.exit_code == 1
        assert "Sprite GFX_nothing not found" in result.output

    def test_settings_set_and_show(self, runner):
        result = runner.invoke(cli, ["settings", "set", "preview.resolve_sprites", "false"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["settings", "show"])
        assert result.exit_code == 0, result.output
        assert "resolve_sprites: false" in result.output

    def test_log_file_written(self, runner, game_files, tmp_path):
        log_path = tmp_path / "work" / "hoi4-preview.log.jsonl"

        runner.invoke(cli, ["--game", str(game_files), "--log-level", "debug", "overview", "--no-sprites"])

        records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
        assert any(r["logger"] == "hoi4_preview.main" for r in records)
        assert all(r["schema"]["name"] == "hoi4preview.log" for r in records)
