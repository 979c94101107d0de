"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from edgeplan.cli import cli
from edgeplan.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("EDGEPLAN__")}
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".edgeplan" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "assets:" in result.output
    assert "text_encoding: utf-8" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["config", "set", "assets.text_encoding", "--value", "iso-8859-1"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert "iso-8859-1" in result.output
    assert "Updated assets.text_encoding" in result.output

    config = ConfigManager(config_path=_config_path(tmp_path), env={}).load()
    assert config.assets.text_encoding == "iso-8859-1"


def test_config_set_same_value_reports_no_change(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    runner.invoke(cli, ["config", "set", "assets.max_workers", "--value", "4"], env=env)
    result = runner.invoke(cli, ["config", "set", "assets.max_workers", "--value", "4"], env=env)

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["config", "set", "assets.text_encoding", "--value", "utf-16"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("max_workers: 8", "max_workers: 3")

    monkeypatch.setattr("edgeplan.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "updated" in result.output.lower()
    assert manager.load().assets.max_workers == 3


def test_config_edit_rejects_bad_yaml(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    ConfigManager(config_path=_config_path(tmp_path), env={}).ensure_exists()

    monkeypatch.setattr("edgeplan.cli.click.edit", lambda text, **_: "- just\n- a list\n")

    result = runner.invoke(cli, ["config", "edit"], env=_env_with_home(tmp_path))

    assert result.exit_code != 0
    assert "top-level mapping" in result.output


def test_config_view_as_env_lists_assignments(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view", "--as-env"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert "EDGEPLAN__ASSETS__TEXT_ENCODING=utf-8" in lines
    assert "EDGEPLAN__INVALIDATION__ENABLED=true" in lines


def test_env_wait_does_not_reenable_disabled_invalidation(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["config", "set", "invalidation", "--value", "false"], env=env)
    env["EDGEPLAN__INVALIDATION__WAIT"] = "true"

    result = runner.invoke(cli, ["config", "view", "--as-env"], env=env)

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert "EDGEPLAN__INVALIDATION__ENABLED=false" in lines
    assert "EDGEPLAN__INVALIDATION__WAIT=true" in lines
