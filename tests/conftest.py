"""Shared fixtures: isolated HOME, backup/settings dirs, a project directory."""

import json
from pathlib import Path

import pytest

from configconv import config
from configconv.services import backup_service


@pytest.fixture(autouse=True)
def fake_home(tmp_path, monkeypatch):
    """HOME -> tmp_path/home; XDG vars cleared so every path resolves under it."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for var in ("XDG_CONFIG_HOME", "XDG_DATA_HOME", "XDG_STATE_HOME"):
        monkeypatch.delenv(var, raising=False)

    config_dir = tmp_path / "configconv"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_FILE", config_dir / "config.json")
    monkeypatch.setattr(backup_service, "BACKUPS_DIR", config_dir / "backups")
    return home


@pytest.fixture
def tmp_project(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    return project.resolve()


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_json(path: Path, data) -> Path:
    return write(path, json.dumps(data, indent=2))


def read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def snapshot_tree(root: Path) -> dict:
    """{relative path: bytes} of every file under root."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
