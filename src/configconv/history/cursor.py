"""
Cursor chat history.

Cursor luu chat trong hai SQLite database:
  workspaceStorage/<hash>/state.vscdb  ItemTable['composer.composerData'] -> allComposers[]
  workspaceStorage/<hash>/workspace.json  {"folder": "file:///path/to/project"}
  globalStorage/state.vscdb  cursorDiskKV['composerData:<id>'], cursorDiskKV['bubbleId:<id>:<bubble>']
"""

import json
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

from configconv import paths
from configconv.history.claude_code import hash_project_path, slugify
from configconv.history.types import (
    ConvertedSession,
    CursorHistoryMessage,
    CursorHistoryScan,
    CursorHistorySession,
    HistoryConversion,
    SessionMessage,
    SessionPart,
)
from configconv.utils import list_dir, logger, read_json


def _connect(db_path: Path) -> sqlite3.Connection:
    # Read-only: Cursor may hold the database open
    return sqlite3.connect(f"{db_path.as_uri()}?mode=ro", uri=True)


def _fetch_value(conn: sqlite3.Connection, table: str, key: str) -> Optional[Any]:
    row = conn.execute(f"SELECT value FROM {table} WHERE key = ?", (key,)).fetchone()
    if not row or row[0] is None:
        return None
    raw = row[0]
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return json.loads(raw)


def decode_workspace_folder(folder: str) -> Optional[str]:
    """'file:///Users/me/app' -> '/Users/me/app'"""
    if folder.startswith("file://"):
        return unquote(urlparse(folder).path) or None
    return folder or None


def _workspace_composers(state_db: Path, since: Optional[datetime]) -> List[Dict[str, Any]]:
    with closing(_connect(state_db)) as conn:
        data = _fetch_value(conn, "ItemTable", "composer.composerData")
    if not isinstance(data, dict):
        return []

    since_ms = int(since.timestamp() * 1000) if since else 0
    metas = []
    for entry in data.get("allComposers") or []:
        if not isinstance(entry, dict) or not entry.get("composerId"):
            continue
        if entry.get("isArchived"):
            continue
        created = entry.get("createdAt")
        if since_ms and isinstance(created, (int, float)) and created < since_ms:
            continue
        metas.append(entry)
    return metas


def _title_from(messages: List[CursorHistoryMessage]) -> str:
    for message in messages:
        if message.role == "user" and message.text.strip():
            text = message.text.strip()
            return text if len(text) <= 80 else f"{text[:77]}..."
    return "Untitled chat"


def _load_bubble(conn: sqlite3.Connection, composer_id: str, header: Dict[str, Any]) -> Optional[CursorHistoryMessage]:
    bubble_id = header.get("bubbleId")
    if not bubble_id:
        return None
    bubble = _fetch_value(conn, "cursorDiskKV", f"bubbleId:{composer_id}:{bubble_id}")
    if not isinstance(bubble, dict):
        return None
    text = bubble.get("text") or ""
    tool_results = bubble.get("toolResults") or []
    if not text and not tool_results:
        return None
    return CursorHistoryMessage(
        bubble_id=bubble_id,
        role="user" if header.get("type") == 1 else "assistant",
        text=text,
        tool_results=list(tool_results),
        thinking=list(bubble.get("allThinkingBlocks") or []),
    )


def _load_conversation(
    conn: sqlite3.Connection, meta: Dict[str, Any], project_path: str
) -> Optional[CursorHistorySession]:
    composer_id = meta["composerId"]
    data = _fetch_value(conn, "cursorDiskKV", f"composerData:{composer_id}")
    if not isinstance(data, dict):
        return None

    messages = []
    for header in data.get("fullConversationHeadersOnly") or []:
        if not isinstance(header, dict):
            continue
        bubble = _load_bubble(conn, composer_id, header)
        if bubble:
            messages.append(bubble)
    if not messages:
        return None

    created = meta.get("createdAt") or data.get("createdAt") or 0
    model_config = data.get("modelConfig") or {}
    return CursorHistorySession(
        composer_id=composer_id,
        title=meta.get("name") or data.get("text") or _title_from(messages),
        project_path=project_path,
        created_at=int(created),
        last_updated_at=int(meta.get("lastUpdatedAt") or created),
        mode=meta.get("unifiedMode") or data.get("unifiedMode") or "chat",
        model=model_config.get("modelName") if isinstance(model_config, dict) else None,
        messages=messages,
    )


def scan_cursor_history(since: Optional[datetime] = None) -> CursorHistoryScan:
    """
    Doc chat history cua Cursor tu cac file state.vscdb.

    Workspace hoac conversation hong chi tao warning; SQLite loi khong lam hong scan.
    """
    result = CursorHistoryScan()
    global_db = paths.cursor_global_state_db_path()

    workspaces = []
    for ws_dir in list_dir(paths.cursor_workspace_storage_dir()):
        state_db = ws_dir / "state.vscdb"
        if not state_db.is_file():
            continue
        ws_json = read_json(ws_dir / "workspace.json", result.warnings) or {}
        folder = ws_json.get("folder")
        project_path = decode_workspace_folder(folder) if isinstance(folder, str) else None
        if project_path:
            workspaces.append((ws_dir, state_db, project_path))

    if not workspaces or not global_db.is_file():
        return result

    try:
        with closing(_connect(global_db)) as conn:
            for ws_dir, state_db, project_path in workspaces:
                try:
                    metas = _workspace_composers(state_db, since)
                except (sqlite3.Error, json.JSONDecodeError, UnicodeDecodeError) as e:
                    result.warnings.append(f"Cursor workspace {ws_dir.name} skipped: {e}")
                    continue
                for meta in metas:
                    try:
                        session = _load_conversation(conn, meta, project_path)
                    except (sqlite3.Error, json.JSONDecodeError, TypeError, ValueError) as e:
                        result.warnings.append(f"Cursor chat {meta.get('composerId')} skipped: {e}")
                        continue
                    if session:
                        result.sessions.append(session)
                        result.total_messages += len(session.messages)
    except sqlite3.Error as e:
        result.warnings.append(f"Cursor global state database unreadable: {e}")

    result.total_sessions = len(result.sessions)
    return result


# =============================================================================
# CONVERSION
# =============================================================================


def _convert_parts(message: CursorHistoryMessage, msg_id: str) -> List[SessionPart]:
    parts: List[SessionPart] = []

    def _add(kind: str, content: str) -> None:
        parts.append(SessionPart(f"part_{msg_id}_{len(parts) + 1:03d}", msg_id, kind, content))

    for block in message.thinking:
        thinking = block.get("thinking") if isinstance(block, dict) else None
        if thinking:
            _add("reasoning", thinking)
    if message.text:
        _add("text", message.text)
    for tool in message.tool_results:
        if isinstance(tool, dict):
            content = tool.get("result") or tool.get("error") or json.dumps(tool, ensure_ascii=False)
        else:
            content = json.dumps(tool, ensure_ascii=False)
        _add("tool-result", content if isinstance(content, str) else json.dumps(content, ensure_ascii=False))
    return parts


def _convert_session(session: CursorHistorySession) -> Optional[ConvertedSession]:
    project_id = hash_project_path(session.project_path)
    session_id = f"ses_cursor_{session.composer_id[:8]}"

    messages: List[SessionMessage] = []
    for counter, message in enumerate(session.messages, start=1):
        msg_id = f"msg_{session_id}_{counter:04d}"
        parts = _convert_parts(message, msg_id)
        if parts:
            messages.append(
                SessionMessage(id=msg_id, session_id=session_id, role=message.role,
                               created=session.created_at, parts=parts)
            )
    if not messages:
        return None

    title = session.title or _title_from(session.messages)
    return ConvertedSession(
        project_id=project_id,
        session={
            "id": session_id,
            "slug": slugify(title) or "untitled-chat",
            "version": "imported",
            "projectID": project_id,
            "directory": session.project_path,
            "title": title,
            "time": {"created": session.created_at, "updated": session.last_updated_at},
            "summary": {"additions": 0, "deletions": 0, "files": 0},
        },
        messages=messages,
    )


def convert_cursor_history(history: CursorHistoryScan) -> HistoryConversion:
    """Convert Cursor chats to OpenCode sessions."""
    conversion = HistoryConversion()
    report = conversion.report

    for session in history.sessions:
        try:
            converted = _convert_session(session)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Failed to convert Cursor chat %s: %s", session.composer_id, e)
            report.errors.append(f"Failed to convert Cursor chat {session.composer_id}: {e}")
            continue
        if converted is None:
            continue
        conversion.sessions.append(converted)
        details = f"{len(converted.messages)} messages, mode: {session.mode}"
        if session.model:
            details += f", model: {session.model}"
        report.add_converted("history", f"Cursor chat: {session.title}", converted.id, details)

    report.add_converted(
        "history",
        f"{history.total_sessions} Cursor chat sessions, {history.total_messages} messages",
        f"{len(conversion.sessions)} sessions converted",
    )
    return conversion
