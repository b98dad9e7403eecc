import json

import pytest
from typer.testing import CliRunner

from editorbridge.cli.commands import app, mask_secret
from editorbridge.config.access import clear_config_cache

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fresh_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "editorbridge v" in result.stdout


def test_mask_secret() -> None:
    assert mask_secret("") == ""
    assert mask_secret("short") == "***"
    assert mask_secret("abcdefghijkl") == "abcd***"


def test_patch_dry_run_leaves_file(tmp_path) -> None:
    target = tmp_path / "f.txt"
    target.write_text("hello world\n")
    result = runner.invoke(app, ["patch", str(target), "--search", "world", "--replace", "there", "--dry-run"])
    assert result.exit_code == 0
    assert "hello there" in result.stdout
    assert target.read_text() == "hello world\n"


def test_patch_writes_file(tmp_path) -> None:
    target = tmp_path / "f.txt"
    target.write_text("a\n    b\nc\n")
    replace_file = tmp_path / "replace.txt"
    replace_file.write_text("B\n")
    result = runner.invoke(
        app, ["patch", str(target), "--search", "b\n", "--replace-file", str(replace_file)]
    )
    assert result.exit_code == 0
    assert "Patched" in result.stdout
    assert target.read_text() != "a\n    b\nc\n"


def test_patch_not_found_exits_1(tmp_path) -> None:
    target = tmp_path / "f.txt"
    target.write_text("hello\n")
    result = runner.invoke(app, ["patch", str(target), "--search", "absent"])
    assert result.exit_code == 1
    assert target.read_text() == "hello\n"


def test_patch_missing_file_exits_1(tmp_path) -> None:
    result = runner.invoke(app, ["patch", str(tmp_path / "nope.txt"), "--search", "x"])
    assert result.exit_code == 1


def test_ls_lists_workspace(tmp_path) -> None:
    (tmp_path / "a.txt").write_text("")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("")
    result = runner.invoke(app, ["ls", "--workspace", str(tmp_path), "--recursive"])
    assert result.exit_code == 0
    assert "a.txt" in result.stdout
    assert "sub/" in result.stdout
    assert "sub/b.txt" in result.stdout


def test_ls_reports_truncation(tmp_path) -> None:
    for i in range(5):
        (tmp_path / f"f{i}.txt").write_text("")
    result = runner.invoke(app, ["ls", "--workspace", str(tmp_path), "--max-files", "2"])
    assert result.exit_code == 0
    assert "truncated" in result.stdout.lower()


def test_status_masks_token(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"connection": {"url": "ws://h/b", "token": "abcdefghijkl"}, "tools": {"shell": False}})
    )
    result = runner.invoke(app, ["status", "--config", str(config_path)])
    assert result.exit_code == 0
    assert "abcdefghijkl" not in result.stdout
    assert "abcd***" in result.stdout
    assert "shell" in result.stdout


def test_status_invalid_config_exits_1(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{broken")
    result = runner.invoke(app, ["status", "--config", str(config_path)])
    assert result.exit_code == 1
