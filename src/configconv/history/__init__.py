"""Chat history import: Claude Code / Cursor transcripts -> OpenCode sessions."""

from configconv.history.claude_code import convert_history, scan_claude_history
from configconv.history.cursor import convert_cursor_history, scan_cursor_history
from configconv.history.types import ConvertedSession, HistoryConversion
from configconv.history.writer import write_history_sessions, write_prompt_history

__all__ = [
    "ConvertedSession",
    "HistoryConversion",
    "convert_cursor_history",
    "convert_history",
    "scan_claude_history",
    "scan_cursor_history",
    "write_history_sessions",
    "write_prompt_history",
]
