"""Tests for chat history import (Claude Code / Cursor -> OpenCode storage)."""

import hashlib
import json
import sqlite3
from contextlib import closing
from datetime import datetime, timezone

from configconv import paths
from configconv.core.types import AgentFormat
from configconv.history import (
    convert_cursor_history,
    convert_history,
    scan_claude_history,
    scan_cursor_history,
    write_history_sessions,
    write_prompt_history,
)
from configconv.history.types import CursorHistoryMessage, CursorHistoryScan, CursorHistorySession
from configconv.scanners import ScanOptions
from configconv.services.migrate_service import run_migrate
from tests.conftest import read_json, write, write_json

NEW_SESSION = "abcdef1234567890"
OLD_SESSION = "0123456789abcdef"


def _ms(iso: str) -> int:
    return int(datetime.fromisoformat(iso.replace("Z", "+00:00")).timestamp() * 1000)


def _seed_claude_history(home):
    project_dir = home / ".claude" / "projects" / "-tmp-app"
    transcript = project_dir / f"{NEW_SESSION}.jsonl"
    lines = [
        {"type": "user", "message": {"role": "user", "content": "Fix the login bug"},
         "timestamp": "2026-01-10T10:00:00Z"},
        {"type": "assistant", "message": {"role": "assistant", "content": [
            {"type": "thinking", "thinking": "Look at auth.py"},
            {"type": "text", "text": "Fixed it."},
            {"type": "tool_use", "id": "toolu_1", "name": "Edit", "input": {"file_path": "auth.py"}},
        ]}, "timestamp": "2026-01-10T10:01:00Z"},
        {"type": "summary", "summary": "ignored"},
    ]
    write(transcript, "\n".join(json.dumps(line) for line in lines) + "\n{not json\n")
    write_json(project_dir / "sessions-index.json", {
        "originalPath": "/tmp/app",
        "entries": [
            {
                "sessionId": NEW_SESSION,
                "fullPath": str(transcript),
                "firstPrompt": "Fix the login bug",
                "messageCount": 2,
                "created": "2026-01-10T10:00:00Z",
                "modified": "2026-01-10T11:00:00Z",
                "gitBranch": "main",
            },
            {
                "sessionId": OLD_SESSION,
                "messageCount": 3,
                "created": "2025-01-01T00:00:00Z",
            },
            {"no": "session id"},
        ],
    })
    history = [
        {"display": "Fix the login bug", "timestamp": _ms("2026-01-10T10:00:00Z"), "project": "/tmp/app"},
        {"display": "old prompt", "timestamp": _ms("2025-01-01T00:00:00Z")},
        {"timestamp": 1},
    ]
    write(home / ".claude" / "history.jsonl", "\n".join(json.dumps(h) for h in history) + "\n")


# =============================================================================
# CLAUDE CODE
# =============================================================================


def test_scan_claude_history(fake_home):
    _seed_claude_history(fake_home)
    scan = scan_claude_history()

    assert scan.total_sessions == 2
    assert scan.total_messages == 5
    [index] = scan.session_indices
    assert index.project_path == "/tmp/app"
    assert [e.session_id for e in index.entries] == [NEW_SESSION, OLD_SESSION]
    assert len(index.entries[0].lines) == 3
    assert [p.display for p in scan.prompt_history] == ["Fix the login bug", "old prompt"]
    assert any("malformed session entry" in w for w in scan.warnings)
    assert any("malformed line" in w for w in scan.warnings)


def test_scan_claude_history_since(fake_home):
    _seed_claude_history(fake_home)
    scan = scan_claude_history(datetime(2026, 1, 1, tzinfo=timezone.utc))

    assert scan.total_sessions == 1
    assert [e.session_id for e in scan.session_indices[0].entries] == [NEW_SESSION]
    assert [p.display for p in scan.prompt_history] == ["Fix the login bug"]


def test_scan_claude_history_empty(fake_home):
    scan = scan_claude_history()
    assert scan.total_sessions == 0
    assert scan.session_indices == []
    assert scan.warnings == []


def test_convert_history(fake_home):
    _seed_claude_history(fake_home)
    conversion = convert_history(scan_claude_history())

    # Old session has no transcript on disk -> no messages -> dropped
    [session] = conversion.sessions
    project_id = hashlib.sha256(b"/tmp/app").hexdigest()[:16]
    assert session.id == "ses_imported_abcdef12"
    assert session.project_id == project_id
    assert session.session["projectID"] == project_id
    assert session.session["directory"] == "/tmp/app"
    assert session.session["title"] == "Fix the login bug"
    assert session.session["slug"] == "fix-the-login-bug"
    assert session.session["time"] == {
        "created": _ms("2026-01-10T10:00:00Z"),
        "updated": _ms("2026-01-10T11:00:00Z"),
    }

    user, assistant = session.messages
    assert user.id == "msg_ses_imported_abcdef12_0001"
    assert user.role == "user"
    assert [p.content for p in user.parts] == ["Fix the login bug"]
    assert [p.type for p in assistant.parts] == ["reasoning", "text", "tool-invocation"]
    assert json.loads(assistant.parts[2].content) == {
        "name": "Edit",
        "input": {"file_path": "auth.py"},
        "toolCallId": "toolu_1",
    }
    assert assistant.created == _ms("2026-01-10T10:01:00Z")

    assert conversion.prompt_history[0] == {"input": "Fix the login bug", "parts": [], "mode": "normal"}
    assert conversion.report.errors == []


# =============================================================================
# WRITER
# =============================================================================


def test_write_history_sessions_layout_and_dedupe(fake_home, tmp_path):
    _seed_claude_history(fake_home)
    conversion = convert_history(scan_claude_history())
    storage = tmp_path / "storage"
    session = conversion.sessions[0]

    written = write_history_sessions(conversion.sessions, storage_dir=storage)

    # project + session + 2 messages + 1 user part + 3 assistant parts
    assert len(written) == 8
    project = read_json(storage / "project" / f"{session.project_id}.json")
    assert project["worktree"] == "/tmp/app"
    stored = read_json(storage / "session" / session.project_id / f"{session.id}.json")
    assert stored == session.session
    part = read_json(storage / "part" / "msg_ses_imported_abcdef12_0001" / "part_msg_ses_imported_abcdef12_0001_001.json")
    assert part["sessionID"] == session.id
    assert part["text"] == "Fix the login bug"

    # Second import of the same sessions writes nothing
    assert write_history_sessions(conversion.sessions, storage_dir=storage) == []


def test_write_history_sessions_dry_run(fake_home, tmp_path):
    _seed_claude_history(fake_home)
    conversion = convert_history(scan_claude_history())
    storage = tmp_path / "storage"

    written = write_history_sessions(conversion.sessions, storage_dir=storage, dry_run=True)
    assert len(written) == 8
    assert not storage.exists()


def test_write_prompt_history_dedupes(tmp_path):
    target = tmp_path / "prompt-history.jsonl"
    entries = [
        {"input": "one", "parts": [], "mode": "normal"},
        {"input": "two", "parts": [], "mode": "normal"},
        {"input": "one", "parts": [], "mode": "normal"},
    ]

    assert write_prompt_history(entries, path=target) == 2
    assert write_prompt_history(entries, path=target) == 0
    rows = [json.loads(line) for line in target.read_text().splitlines()]
    assert [r["input"] for r in rows] == ["one", "two"]


# =============================================================================
# CURSOR
# =============================================================================


def _kv_db(path, table, rows):
    path.parent.mkdir(parents=True, exist_ok=True)
    with closing(sqlite3.connect(str(path))) as conn:
        conn.execute(f"CREATE TABLE {table} (key TEXT PRIMARY KEY, value BLOB)")
        conn.executemany(f"INSERT INTO {table} VALUES (?, ?)", [(k, json.dumps(v)) for k, v in rows.items()])
        conn.commit()


def _seed_cursor_history():
    user_dir = paths.cursor_user_dir()
    ws = user_dir / "workspaceStorage" / "abc123"
    write_json(ws / "workspace.json", {"folder": "file:///work/my%20app"})
    _kv_db(ws / "state.vscdb", "ItemTable", {
        "composer.composerData": {"allComposers": [
            {"composerId": "comp-0001-xyz", "name": "Refactor auth", "createdAt": _ms("2026-02-01T00:00:00Z"),
             "lastUpdatedAt": _ms("2026-02-01T01:00:00Z"), "unifiedMode": "agent"},
            {"composerId": "comp-archived", "isArchived": True},
        ]},
    })
    _kv_db(user_dir / "globalStorage" / "state.vscdb", "cursorDiskKV", {
        "composerData:comp-0001-xyz": {
            "fullConversationHeadersOnly": [{"bubbleId": "b1", "type": 1}, {"bubbleId": "b2", "type": 2}],
            "modelConfig": {"modelName": "claude-4-sonnet"},
        },
        "bubbleId:comp-0001-xyz:b1": {"text": "Clean up auth.py"},
        "bubbleId:comp-0001-xyz:b2": {"text": "Done.", "allThinkingBlocks": [{"thinking": "Split it"}]},
    })


def test_scan_cursor_history(fake_home):
    _seed_cursor_history()
    scan = scan_cursor_history()

    assert scan.total_sessions == 1
    assert scan.total_messages == 2
    [session] = scan.sessions
    assert session.project_path == "/work/my app"
    assert session.title == "Refactor auth"
    assert session.mode == "agent"
    assert session.model == "claude-4-sonnet"
    assert [m.role for m in session.messages] == ["user", "assistant"]


def test_scan_cursor_history_since_and_missing(fake_home):
    assert scan_cursor_history().sessions == []
    _seed_cursor_history()
    assert scan_cursor_history(datetime(2026, 6, 1, tzinfo=timezone.utc)).sessions == []


def test_convert_cursor_history():
    scan = CursorHistoryScan(
        sessions=[
            CursorHistorySession(
                composer_id="1234567890",
                title="",
                project_path="/work/app",
                created_at=1000,
                last_updated_at=2000,
                messages=[
                    CursorHistoryMessage(bubble_id="a", role="user", text="Add tests"),
                    CursorHistoryMessage(
                        bubble_id="b",
                        role="assistant",
                        text="ok",
                        tool_results=[{"result": "passed"}],
                        thinking=[{"thinking": "plan"}],
                    ),
                ],
            ),
            CursorHistorySession(
                composer_id="empty000",
                title="Empty",
                project_path="/work/app",
                created_at=1,
                last_updated_at=1,
                messages=[CursorHistoryMessage(bubble_id="c", role="user")],
            ),
        ],
        total_sessions=2,
        total_messages=3,
    )

    conversion = convert_cursor_history(scan)

    [session] = conversion.sessions
    assert session.id == "ses_cursor_12345678"
    assert session.session["title"] == "Add tests"
    assert session.session["time"] == {"created": 1000, "updated": 2000}
    assert session.project_id == hashlib.sha256(b"/work/app").hexdigest()[:16]
    assert [p.type for p in session.messages[1].parts] == ["reasoning", "text", "tool-result"]
    assert session.messages[1].parts[2].content == "passed"
    assert conversion.prompt_history == []


# =============================================================================
# MIGRATE
# =============================================================================


def test_migrate_history_to_opencode(fake_home):
    _seed_claude_history(fake_home)
    result = run_migrate(
        AgentFormat.CLAUDE_CODE,
        AgentFormat.OPENCODE,
        ScanOptions(include_history=True),
        backup=False,
    )

    assert result.output.history is not None
    assert len(result.history_files) == 8
    assert result.prompt_history_added == 2
    assert result.to_dict()["history"] == {"sessions": 1, "filesWritten": 8, "promptHistoryAdded": 2}
    assert (paths.oc_storage_dir() / "session").is_dir()
    assert paths.oc_prompt_history_path().is_file()


def test_migrate_history_to_cursor_is_skipped(fake_home):
    _seed_claude_history(fake_home)
    result = run_migrate(
        AgentFormat.CLAUDE_CODE,
        AgentFormat.CURSOR,
        ScanOptions(include_history=True),
        dry_run=True,
    )

    assert result.output.history is None
    assert [s.category for s in result.output.report.skipped] == ["history"]
    assert "history" not in result.to_dict()
