"""Tests for backup_service: sessions, listing, resolve, restore."""

import json

import pytest

from configconv.core.errors import BackupError
from configconv.core.types import AgentFormat
from configconv.scanners import ScanOptions
from configconv.services import backup_service
from configconv.services.backup_service import BackupSession, delete_backup, list_backups, resolve_backup, restore
from configconv.services.migrate_service import run_migrate
from tests.conftest import write, write_json


def _make_backup(backup_id, created, description="", files=None):
    path = backup_service.BACKUPS_DIR / backup_id
    path.mkdir(parents=True)
    manifest = {"id": backup_id, "created": created, "description": description, "files": files or []}
    (path / "manifest.json").write_text(json.dumps(manifest))
    return path


# =============================================================================
# SESSION
# =============================================================================


def test_session_is_lazy():
    session = BackupSession(description="nothing")
    assert not session.started
    assert session.path is None
    assert not backup_service.BACKUPS_DIR.exists()


def test_session_copies_file_and_writes_manifest(tmp_path):
    original = write(tmp_path / "cfg" / "settings.json", '{"a": 1}')
    session = BackupSession(description="claude-code -> opencode")

    copy = session.backup_file(original)

    assert session.started
    assert copy.read_text() == '{"a": 1}'
    manifest = json.loads((session.path / "manifest.json").read_text())
    assert manifest["id"] == session.id
    assert manifest["created"] == session.created
    assert manifest["files"] == [{
        "original": str(original.absolute()),
        "backup": original.absolute().relative_to(original.absolute().anchor).as_posix(),
    }]


def test_created_files_are_recorded_without_copy(tmp_path):
    early = tmp_path / "new" / "early.md"
    late = tmp_path / "new" / "late.md"
    existing = write(tmp_path / "AGENTS.md", "old\n")
    session = BackupSession()

    session.record_created(early)
    assert not session.started
    assert not backup_service.BACKUPS_DIR.exists()

    session.backup_file(existing)
    session.record_created(late)

    manifest = json.loads((session.path / "manifest.json").read_text())
    assert manifest["new_files"] == [str(early.absolute()), str(late.absolute())]
    assert len(manifest["files"]) == 1
    assert not (session.path / early.absolute().relative_to(early.absolute().anchor)).exists()


# =============================================================================
# LIST / RESOLVE
# =============================================================================


def test_list_backups_empty():
    assert list_backups() == []


def test_list_backups_newest_first():
    _make_backup("20260101T000000000000Z", "2026-01-01T00:00:00Z", "first")
    _make_backup("20260301T000000000000Z", "2026-03-01T00:00:00Z", "third")
    _make_backup("20260201T000000000000Z", "2026-02-01T00:00:00Z", "second")

    backups = list_backups()
    assert [b.description for b in backups] == ["third", "second", "first"]
    assert backups[0].created == "2026-03-01T00:00:00Z"


def test_list_backups_without_manifest():
    (backup_service.BACKUPS_DIR / "20260101T000000000000Z").mkdir(parents=True)
    [info] = list_backups()
    assert info.created == info.id
    assert info.files == []


def test_resolve_backup_latest_and_by_id(tmp_path):
    old = _make_backup("20260101T000000000000Z", "a")
    new = _make_backup("20260201T000000000000Z", "b")

    assert resolve_backup() == new
    assert resolve_backup("latest") == new
    assert resolve_backup("20260101T000000000000Z") == old
    assert resolve_backup(str(old)) == old


def test_resolve_backup_missing():
    with pytest.raises(BackupError, match="No backups"):
        resolve_backup()
    _make_backup("20260101T000000000000Z", "a")
    with pytest.raises(BackupError, match="not found"):
        resolve_backup("does-not-exist")


# =============================================================================
# RESTORE
# =============================================================================


def test_restore_missing_directory(tmp_path):
    result = restore(tmp_path / "nope")
    assert result.restored == []
    assert len(result.errors) == 1


def test_restore_reports_missing_backup_file(tmp_path):
    path = _make_backup(
        "20260101T000000000000Z",
        "a",
        files=[{"original": str(tmp_path / "x.json"), "backup": "gone/x.json"}],
    )
    result = restore(path)
    assert result.restored == []
    assert "Backup file missing" in result.errors[0]


def test_restore_without_manifest_uses_tree_layout(tmp_path):
    original = write(tmp_path / "cfg" / "AGENTS.md", "current\n").absolute()
    backup_dir = backup_service.BACKUPS_DIR / "manual"
    write(backup_dir / original.relative_to(original.anchor), "saved\n")

    result = restore(backup_dir)

    assert result.errors == []
    assert result.restored == [str(original)]
    assert original.read_text() == "saved\n"


def test_migrate_then_restore_reproduces_overwritten_files(fake_home):
    """Backup chua ban goc; restore tra lai dung tung byte."""
    write_json(fake_home / ".claude" / "settings.json", {"model": "opus"})
    write(fake_home / ".claude" / "CLAUDE.md", "Be brief.\n")

    oc_dir = fake_home / ".config" / "opencode"
    config = write(oc_dir / "opencode.json", '{\n  // mine\n  "theme": "light"\n}\n')
    agents_md = write(oc_dir / "AGENTS.md", "Original rules\n")
    before = {config: config.read_bytes(), agents_md: agents_md.read_bytes()}

    result = run_migrate(AgentFormat.CLAUDE_CODE, AgentFormat.OPENCODE, ScanOptions(), force=True)

    assert set(result.write.files_written) == {str(config), str(agents_md)}
    assert config.read_bytes() != before[config]
    assert agents_md.read_text() == "Be brief.\n"
    assert result.write.backup_dir is not None

    restored = restore(resolve_backup())
    assert restored.errors == []
    assert sorted(restored.restored) == sorted([str(config), str(agents_md)])
    for path, content in before.items():
        assert path.read_bytes() == content


def test_restore_removes_files_created_by_migration(fake_home):
    write(fake_home / ".claude" / "CLAUDE.md", "Be brief.\n")
    write(fake_home / ".claude" / "agents" / "reviewer.md", "---\ndescription: Reviews\n---\nReview.\n")
    agents_md = write(fake_home / ".config" / "opencode" / "AGENTS.md", "Original rules\n")
    agent = fake_home / ".config" / "opencode" / "agents" / "reviewer.md"

    result = run_migrate(AgentFormat.CLAUDE_CODE, AgentFormat.OPENCODE, ScanOptions(), force=True)
    assert agent.is_file()

    [info] = list_backups()
    assert info.new_files == [str(agent.absolute())]

    restored = restore(result.write.backup_dir)
    assert restored.errors == []
    assert restored.restored == [str(agents_md.absolute())]
    assert restored.removed == [str(agent.absolute())]
    assert not agent.exists()
    assert agents_md.read_text() == "Original rules\n"


def test_restore_skips_created_file_already_gone(tmp_path):
    path = _make_backup("20260101T000000000000Z", "a")
    manifest = json.loads((path / "manifest.json").read_text())
    manifest["new_files"] = [str(tmp_path / "gone.md")]
    (path / "manifest.json").write_text(json.dumps(manifest))

    result = restore(path)
    assert result.removed == []
    assert result.errors == []


# =============================================================================
# DELETE
# =============================================================================


def test_delete_backup():
    keep = _make_backup("20260101T000000000000Z", "a")
    gone = _make_backup("20260201T000000000000Z", "b")

    assert delete_backup("20260201T000000000000Z") == gone
    assert not gone.exists()
    assert [b.path for b in list_backups()] == [keep]


def test_delete_unknown_backup(tmp_path):
    outside = write(tmp_path / "outside" / "keep.txt", "x").parent
    _make_backup("20260101T000000000000Z", "a")

    with pytest.raises(BackupError, match="not found"):
        delete_backup("nope")
    with pytest.raises(BackupError, match="not found"):
        delete_backup(str(outside))
    with pytest.raises(BackupError, match="not found"):
        delete_backup("../outside")
    assert outside.is_dir()
