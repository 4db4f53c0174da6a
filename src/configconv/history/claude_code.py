"""
Claude Code chat history: scan JSONL transcripts, convert to OpenCode sessions.

Layout:
  ~/.claude/projects/<mangled>/sessions-index.json   index of sessions
  ~/.claude/projects/<mangled>/<session>.jsonl        one API message per line
  ~/.claude/history.jsonl                             prompt history
"""

import hashlib
import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from configconv import paths
from configconv.core.errors import ConfigConvError
from configconv.history.types import (
    ClaudeHistoryScan,
    ClaudeSessionEntry,
    ClaudeSessionIndex,
    ConvertedSession,
    HistoryConversion,
    PromptHistoryEntry,
    SessionMessage,
    SessionPart,
)
from configconv.utils import list_dir, logger, read_json, read_text, to_datetime


def _read_jsonl(path: Path, warnings: List[str]) -> List[Dict[str, Any]]:
    content = read_text(path)
    if content is None:
        return []
    rows: List[Dict[str, Any]] = []
    bad = 0
    for line in content.splitlines():
        if not line.strip():
            continue
        try:
            row = json.loads(line)
        except json.JSONDecodeError:
            bad += 1
            continue
        if isinstance(row, dict):
            rows.append(row)
    if bad:
        warnings.append(f"{path}: skipped {bad} malformed line(s)")
    return rows


def _after(value: Any, since: Optional[datetime]) -> bool:
    if since is None:
        return True
    when = to_datetime(value)
    return when is None or when >= since


def _entry_from_index(raw: Dict[str, Any], index_dir: Path) -> ClaudeSessionEntry:
    session_id = str(raw["sessionId"])
    full_path = raw.get("fullPath") or str(index_dir / f"{session_id}.jsonl")
    return ClaudeSessionEntry(
        session_id=session_id,
        full_path=full_path,
        first_prompt=raw.get("firstPrompt"),
        summary=raw.get("summary"),
        message_count=int(raw.get("messageCount") or 0),
        created=raw.get("created"),
        modified=raw.get("modified"),
        git_branch=raw.get("gitBranch"),
    )


def scan_claude_history(since: Optional[datetime] = None) -> ClaudeHistoryScan:
    """
    Doc toan bo history cua Claude Code.

    Transcript hong bi bo qua tung cai mot va ghi vao warnings; khong bao gio raise.
    """
    result = ClaudeHistoryScan()

    for project_dir in list_dir(paths.cc_projects_dir()):
        if not project_dir.is_dir():
            continue
        index = read_json(project_dir / "sessions-index.json", result.warnings)
        if not index or not isinstance(index.get("entries"), list):
            continue

        project_path = index.get("originalPath") or project_dir.name.replace("-", "/")
        session_index = ClaudeSessionIndex(project_path=project_path, mangled_path=project_dir.name)

        for raw in index["entries"]:
            try:
                entry = _entry_from_index(raw, project_dir)
            except (KeyError, TypeError, ValueError) as e:
                result.warnings.append(f"{project_dir.name}: malformed session entry skipped ({e})")
                continue
            if not _after(entry.created, since):
                continue
            try:
                entry.lines = _read_jsonl(Path(entry.full_path), result.warnings)
            except ConfigConvError as e:
                result.warnings.append(f"Session {entry.session_id} unreadable: {e}")
                continue
            session_index.entries.append(entry)
            result.total_messages += entry.message_count or len(entry.lines)

        result.total_sessions += len(session_index.entries)
        if session_index.entries:
            result.session_indices.append(session_index)

    for row in _read_jsonl(paths.cc_history_path(), result.warnings):
        display = row.get("display")
        if not isinstance(display, str):
            continue
        if not _after(row.get("timestamp"), since):
            continue
        result.prompt_history.append(
            PromptHistoryEntry(display=display, timestamp=row.get("timestamp"), project=row.get("project"))
        )

    return result


# =============================================================================
# CONVERSION
# =============================================================================


def hash_project_path(path: str) -> str:
    return hashlib.sha256(path.encode("utf-8")).hexdigest()[:16]


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:50]


def _millis(value: Any, fallback: int) -> int:
    when = to_datetime(value)
    return int(when.timestamp() * 1000) if when else fallback


def _text_content(message: Dict[str, Any]) -> str:
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [b.get("text") or "" for b in content if isinstance(b, dict) and b.get("type") == "text"]
        return "\n".join(t for t in texts if t)
    return ""


def _assistant_parts(message: Dict[str, Any], msg_id: str) -> List[SessionPart]:
    content = message.get("content")
    if isinstance(content, str):
        return [SessionPart(f"part_{msg_id}_001", msg_id, "text", content)]
    if not isinstance(content, list):
        return []

    parts: List[SessionPart] = []
    counter = 0
    for block in content:
        if not isinstance(block, dict):
            continue
        counter += 1
        part_id = f"part_{msg_id}_{counter:03d}"
        kind = block.get("type")
        if kind == "text":
            parts.append(SessionPart(part_id, msg_id, "text", block.get("text") or ""))
        elif kind == "thinking":
            parts.append(SessionPart(part_id, msg_id, "reasoning", block.get("thinking") or ""))
        elif kind == "tool_use":
            payload = {"name": block.get("name"), "input": block.get("input"), "toolCallId": block.get("id")}
            parts.append(SessionPart(part_id, msg_id, "tool-invocation", json.dumps(payload, ensure_ascii=False)))
        elif kind == "tool_result":
            result = block.get("content")
            text = result if isinstance(result, str) else json.dumps(result or "", ensure_ascii=False)
            parts.append(SessionPart(part_id, msg_id, "tool-result", text))
    return parts


def _convert_lines(lines: List[Dict[str, Any]], session_id: str, fallback_time: int) -> List[SessionMessage]:
    messages: List[SessionMessage] = []
    counter = 0
    for line in lines:
        kind = line.get("type")
        api_msg = line.get("message")
        if kind not in ("user", "assistant") or not isinstance(api_msg, dict):
            continue
        counter += 1
        msg_id = f"msg_{session_id}_{counter:04d}"
        created = _millis(line.get("timestamp"), fallback_time)
        if kind == "user":
            parts = [SessionPart(f"part_{msg_id}_001", msg_id, "text", _text_content(api_msg))]
        else:
            parts = _assistant_parts(api_msg, msg_id)
        messages.append(SessionMessage(id=msg_id, session_id=session_id, role=kind, created=created, parts=parts))
    return messages


def convert_history(history: ClaudeHistoryScan) -> HistoryConversion:
    """
    Convert Claude Code transcripts to OpenCode sessions.

    Transcript loi bi loai bo va ghi vao report.errors; so session ra co the it hon so vao.
    """
    conversion = HistoryConversion()
    report = conversion.report

    for index in history.session_indices:
        project_id = hash_project_path(index.project_path)
        for entry in index.entries:
            try:
                session_id = f"ses_imported_{entry.session_id[:8]}"
                created = _millis(entry.created, 0)
                updated = _millis(entry.modified, created)
                messages = _convert_lines(entry.lines, session_id, created)
                if not messages:
                    continue
                title = entry.summary or entry.first_prompt or "Imported session"
                conversion.sessions.append(
                    ConvertedSession(
                        project_id=project_id,
                        session={
                            "id": session_id,
                            "slug": slugify(title) or "imported-session",
                            "version": "imported",
                            "projectID": project_id,
                            "directory": index.project_path,
                            "title": title,
                            "time": {"created": created, "updated": updated},
                            "summary": {"additions": 0, "deletions": 0, "files": 0},
                        },
                        messages=messages,
                    )
                )
                report.add_converted(
                    "history",
                    entry.full_path,
                    session_id,
                    f"{len(messages)} messages, branch: {entry.git_branch or 'unknown'}",
                )
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Failed to convert session %s: %s", entry.session_id, e)
                report.errors.append(f"Failed to convert session {entry.session_id}: {e}")

    conversion.prompt_history = [
        {"input": p.display, "parts": [], "mode": "normal"} for p in history.prompt_history
    ]
    if conversion.prompt_history:
        report.add_converted(
            "history", f"{len(conversion.prompt_history)} prompt history entries", "prompt-history.jsonl"
        )
    report.add_converted(
        "history",
        f"{history.total_sessions} sessions, {history.total_messages} messages",
        f"{len(conversion.sessions)} sessions converted",
    )
    return conversion
