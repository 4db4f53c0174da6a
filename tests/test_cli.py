"""Tests for the configconv CLI (argv -> _main -> stdout / exit code)."""

import json
import sys
from pathlib import Path

import pytest

from configconv.services import backup_service
from tests.conftest import snapshot_tree, write, write_json


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["configconv", *argv])
    from configconv.cli import _main

    _main()


def _run_json(monkeypatch, capsys, *argv):
    _run(monkeypatch, *argv)
    return json.loads(capsys.readouterr().out)


def _exit_code(monkeypatch, *argv):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, *argv)
    return exc.value.code


def _seed_claude(home):
    write_json(home / ".claude" / "settings.json", {"model": "opus"})
    write_json(home / ".claude.json", {"mcpServers": {"fs": {"command": "npx", "args": ["fs"]}}})
    write(home / ".claude" / "CLAUDE.md", "Be brief.\n")
    write(home / ".claude" / "agents" / "code-reviewer.md", "---\ndescription: Reviews\nmodel: opus\n---\nReview.\n")


# =============================================================================
# ARGUMENTS
# =============================================================================


def test_unknown_format_is_usage_error(monkeypatch, capsys):
    assert _exit_code(monkeypatch, "scan", "--format", "vscode") == 2
    assert "vscode" in capsys.readouterr().err


def test_same_source_and_target(monkeypatch, capsys):
    assert _exit_code(monkeypatch, "migrate", "--from", "cc", "--to", "claude-code", "--json") == 1
    assert "same" in capsys.readouterr().err


def test_invalid_since(monkeypatch, capsys):
    assert _exit_code(monkeypatch, "scan", "--format", "cursor", "--since", "yesterday") == 1
    assert "ISO 8601" in capsys.readouterr().err


def test_no_command_prints_help(monkeypatch, capsys):
    _run(monkeypatch)
    assert "usage" in capsys.readouterr().out.lower()


# =============================================================================
# SCAN / PLAN / MIGRATE
# =============================================================================


def test_scan_json(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    data = _run_json(monkeypatch, capsys, "scan", "--format", "claude", "--json")

    assert data["format"] == "claude-code"
    assert data["global"]["model"] == "anthropic/claude-opus-4-6"
    assert list(data["global"]["mcp_servers"]) == ["fs"]
    assert data["projects"] == []
    assert "history" not in data


def test_scan_text(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    _run(monkeypatch, "scan", "--format", "source")
    out = capsys.readouterr().out
    assert "Claude Code configuration" in out
    assert "agents: 1" in out


def test_plan_writes_nothing(fake_home, tmp_path, monkeypatch, capsys):
    _seed_claude(fake_home)
    before = snapshot_tree(tmp_path)

    data = _run_json(monkeypatch, capsys, "plan", "--from", "claude-code", "--to", "opencode", "--json")

    assert data["dryRun"] is True
    assert data["ok"] is True
    assert data["validation"] == {"valid": True, "errors": [], "warnings": []}
    oc = fake_home / ".config" / "opencode"
    assert sorted(data["filesWritten"]) == sorted([
        str(oc / "opencode.json"),
        str(oc / "AGENTS.md"),
        str(oc / "agents" / "code-reviewer.md"),
    ])
    assert snapshot_tree(tmp_path) == before


def test_migrate_dry_run_twice_is_stable(fake_home, tmp_path, monkeypatch, capsys):
    _seed_claude(fake_home)
    write(fake_home / ".config" / "opencode" / "AGENTS.md", "Existing\n")
    before = snapshot_tree(tmp_path)
    argv = ("migrate", "--from", "claude-code", "--to", "opencode", "--dry-run", "--force", "--json")

    first = _run_json(monkeypatch, capsys, *argv)
    second = _run_json(monkeypatch, capsys, *argv)

    assert first["filesWritten"] == second["filesWritten"]
    assert len(first["filesWritten"]) == 3
    assert "backupDir" not in first
    assert snapshot_tree(tmp_path) == before


def test_migrate_writes_and_reports(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    data = _run_json(monkeypatch, capsys, "migrate", "--from", "claude-code", "--to", "opencode", "--yes", "--json")

    agent = fake_home / ".config" / "opencode" / "agents" / "code-reviewer.md"
    assert str(agent) in data["filesWritten"]
    text = agent.read_text()
    assert "mode: subagent" in text
    assert "model: anthropic/claude-opus-4-6" in text
    assert data["report"]["errors"] == []
    assert any("mode not set" in w for w in data["report"]["warnings"])


def test_migrate_text_output(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    _run(monkeypatch, "migrate", "--from", "cc", "--to", "cursor", "--yes")
    out = capsys.readouterr().out
    assert "Migration: Claude Code -> Cursor" in out
    assert "Skipped" in out
    assert (fake_home / ".cursor" / "mcp.json").is_file()


def test_migrate_backup_false(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    write(fake_home / ".config" / "opencode" / "AGENTS.md", "Existing\n")

    data = _run_json(
        monkeypatch, capsys,
        "migrate", "--from", "cc", "--to", "oc", "--force", "--backup=false", "--yes", "--json",
    )

    assert "backupDir" not in data
    assert not backup_service.BACKUPS_DIR.exists()
    assert (fake_home / ".config" / "opencode" / "AGENTS.md").read_text() == "Be brief.\n"


def test_migrate_force_then_restore(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    agents_md = write(fake_home / ".config" / "opencode" / "AGENTS.md", "Existing\n")

    data = _run_json(monkeypatch, capsys, "migrate", "--from", "cc", "--to", "oc", "--force", "--yes", "--json")
    assert agents_md.read_text() == "Be brief.\n"
    assert data["backupDir"]

    restored = _run_json(monkeypatch, capsys, "restore", data["backupDir"], "--json")
    assert restored["restored"] == [str(agents_md)]
    assert restored["errors"] == []
    assert agents_md.read_text() == "Existing\n"
    agent = fake_home / ".config" / "opencode" / "agents" / "code-reviewer.md"
    assert str(agent) in restored["removed"]
    assert not agent.exists()


# =============================================================================
# DIFF / VALIDATE / RESTORE
# =============================================================================


def test_diff_json(fake_home, monkeypatch, capsys):
    write_json(fake_home / ".claude.json", {"mcpServers": {"fs": {"command": "npx"}}})
    write_json(fake_home / ".config" / "opencode" / "opencode.json", {
        "mcp": {
            "fs": {"type": "local", "command": ["npx"]},
            "extra-server": {"type": "local", "command": ["extra"]},
        }
    })

    data = _run_json(monkeypatch, capsys, "diff", "--from", "claude-code", "--to", "opencode", "--json")

    assert data["from"] == "claude-code"
    assert data["to"] == "opencode"
    assert data["onlyInTarget"] == [{"category": "mcp", "key": "extra-server"}]
    assert data["onlyInSource"] == []


def test_validate_ok(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    _run(monkeypatch, "validate", "--format", "claude-code")
    assert "is valid" in capsys.readouterr().out


def test_validate_errors_exit_1(fake_home, monkeypatch, capsys):
    write(fake_home / ".config" / "opencode" / "agents" / "bad.md", "---\nmode: boss\n---\nBody\n")

    assert _exit_code(monkeypatch, "validate", "--format", "opencode", "--json") == 1
    data = json.loads(capsys.readouterr().out)
    assert data["format"] == "opencode"
    assert data["valid"] is False
    assert len(data["errors"]) == 1


def test_restore_without_backups(monkeypatch, capsys):
    assert _exit_code(monkeypatch, "restore", "--json") == 1
    assert "No backups" in capsys.readouterr().err


def test_restore_unknown_backup(monkeypatch, capsys):
    assert _exit_code(monkeypatch, "restore", "nope") == 1
    assert "not found" in capsys.readouterr().err


def test_restore_list(fake_home, monkeypatch, capsys):
    assert _run_json(monkeypatch, capsys, "restore", "--list", "--json") == []

    _seed_claude(fake_home)
    write(fake_home / ".config" / "opencode" / "AGENTS.md", "Existing\n")
    _run_json(monkeypatch, capsys, "migrate", "--from", "cc", "--to", "oc", "--force", "--yes", "--json")

    [entry] = _run_json(monkeypatch, capsys, "restore", "--list", "--json")
    assert entry["description"] == "claude-code -> opencode"
    assert entry["files"] == 1

    _run(monkeypatch, "restore", "--list")
    assert entry["id"] in capsys.readouterr().out


def test_restore_partial_failure_still_exits_0(fake_home, tmp_path, monkeypatch, capsys):
    backup_dir = backup_service.BACKUPS_DIR / "20260101T000000000000Z"
    kept = write(tmp_path / "kept.md", "current\n")
    write(backup_dir / "saved" / "kept.md", "saved\n")
    write_json(backup_dir / "manifest.json", {
        "id": backup_dir.name,
        "created": "2026-01-01T00:00:00Z",
        "files": [
            {"original": str(kept), "backup": "saved/kept.md"},
            {"original": str(tmp_path / "lost.md"), "backup": "saved/lost.md"},
        ],
    })

    data = _run_json(monkeypatch, capsys, "restore", "latest", "--json")

    assert data["restored"] == [str(kept)]
    assert len(data["errors"]) == 1
    assert kept.read_text() == "saved\n"


def test_restore_delete(fake_home, monkeypatch, capsys):
    _seed_claude(fake_home)
    write(fake_home / ".config" / "opencode" / "AGENTS.md", "Existing\n")
    data = _run_json(monkeypatch, capsys, "migrate", "--from", "cc", "--to", "oc", "--force", "--yes", "--json")
    backup_id = Path(data["backupDir"]).name

    deleted = _run_json(monkeypatch, capsys, "restore", "--delete", backup_id, "--json")
    assert deleted["deleted"] == backup_id
    assert _run_json(monkeypatch, capsys, "restore", "--list", "--json") == []

    assert _exit_code(monkeypatch, "restore", "--delete", backup_id) == 1
    assert "not found" in capsys.readouterr().err
