"""Chat history types: raw transcripts as scanned, and converted sessions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from configconv.core.types import ConversionReport


# =============================================================================
# RAW TRANSCRIPTS (format-native)
# =============================================================================


@dataclass
class ClaudeSessionEntry:
    """One entry of ~/.claude/projects/<mangled>/sessions-index.json plus its JSONL lines."""
    session_id: str
    full_path: str
    first_prompt: Optional[str] = None
    summary: Optional[str] = None
    message_count: int = 0
    created: Optional[str] = None
    modified: Optional[str] = None
    git_branch: Optional[str] = None
    lines: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ClaudeSessionIndex:
    project_path: str
    mangled_path: str
    entries: List[ClaudeSessionEntry] = field(default_factory=list)


@dataclass
class PromptHistoryEntry:
    display: str
    timestamp: Optional[int] = None
    project: Optional[str] = None


@dataclass
class ClaudeHistoryScan:
    session_indices: List[ClaudeSessionIndex] = field(default_factory=list)
    prompt_history: List[PromptHistoryEntry] = field(default_factory=list)
    total_sessions: int = 0
    total_messages: int = 0
    warnings: List[str] = field(default_factory=list)


@dataclass
class CursorHistoryMessage:
    bubble_id: str
    role: str  # "user" | "assistant"
    text: str = ""
    tool_results: List[Any] = field(default_factory=list)
    thinking: List[Any] = field(default_factory=list)


@dataclass
class CursorHistorySession:
    composer_id: str
    title: str
    project_path: str
    created_at: int
    last_updated_at: int
    mode: str = "chat"
    model: Optional[str] = None
    messages: List[CursorHistoryMessage] = field(default_factory=list)


@dataclass
class CursorHistoryScan:
    sessions: List[CursorHistorySession] = field(default_factory=list)
    total_sessions: int = 0
    total_messages: int = 0
    warnings: List[str] = field(default_factory=list)


# =============================================================================
# CONVERTED SESSIONS (OpenCode storage shape)
# =============================================================================


@dataclass
class SessionPart:
    id: str
    message_id: str
    type: str  # text | reasoning | tool-invocation | tool-result
    content: str

    def to_dict(self, session_id: str) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sessionID": session_id,
            "messageID": self.message_id,
            "type": self.type,
            "text": self.content,
        }


@dataclass
class SessionMessage:
    id: str
    session_id: str
    role: str
    created: int
    parts: List[SessionPart] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sessionID": self.session_id,
            "role": self.role,
            "time": {"created": self.created},
        }


@dataclass
class ConvertedSession:
    project_id: str
    session: Dict[str, Any]
    messages: List[SessionMessage] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.session["id"]

    @property
    def directory(self) -> str:
        return self.session.get("directory", "")


@dataclass
class HistoryConversion:
    sessions: List[ConvertedSession] = field(default_factory=list)
    prompt_history: List[Dict[str, Any]] = field(default_factory=list)
    report: ConversionReport = field(default_factory=ConversionReport)
