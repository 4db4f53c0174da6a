"""Shared types and data structures for configconv.

Canonical model (projects, global scope, MCP servers, agents, commands,
skills, rules) plus the report/result types every stage returns.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import UsageError


class AgentFormat(Enum):
    CLAUDE_CODE = "claude-code"
    OPENCODE = "opencode"
    CURSOR = "cursor"

    @property
    def display_name(self) -> str:
        if self is AgentFormat.CLAUDE_CODE:
            return "Claude Code"
        if self is AgentFormat.OPENCODE:
            return "OpenCode"
        return "Cursor"

    @classmethod
    def parse(cls, name: str) -> "AgentFormat":
        """Resolve a format name or alias. Raises UsageError for unknown names."""
        key = (name or "").strip().lower()
        if key in FORMAT_ALIASES:
            return FORMAT_ALIASES[key]
        raise UsageError(
            f"Unknown format '{name}'. Supported: {', '.join(f.value for f in cls)}"
        )


FORMAT_ALIASES: Dict[str, AgentFormat] = {
    "claude-code": AgentFormat.CLAUDE_CODE,
    "claude": AgentFormat.CLAUDE_CODE,
    "cc": AgentFormat.CLAUDE_CODE,
    "source": AgentFormat.CLAUDE_CODE,
    "opencode": AgentFormat.OPENCODE,
    "oc": AgentFormat.OPENCODE,
    "cursor": AgentFormat.CURSOR,
    "target": AgentFormat.CURSOR,
}

# Report categories
CATEGORIES = (
    "config",
    "mcp",
    "agents",
    "commands",
    "skills",
    "permissions",
    "rules",
    "hooks",
    "history",
)

MERGE_STRATEGIES = ("preserve-existing", "overwrite", "merge")

PermissionValue = Union[str, Dict[str, str]]
Permissions = Dict[str, PermissionValue]


# =============================================================================
# CANONICAL MODEL
# =============================================================================


@dataclass(frozen=True)
class McpServer:
    """One MCP server, identical shape whatever format it came from."""
    name: str
    type: str = "local"  # "local" | "remote"
    command: Optional[str] = None
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    enabled: bool = True
    oauth: Optional[Dict[str, Any]] = None
    # Not semantically understood; only passed through to the same format
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RulesFile:
    path: str
    name: str
    content: str
    rule_type: str = "always"  # always | file-scoped | intelligent | manual | general
    always_apply: bool = False
    globs: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class AgentDefinition:
    """
    One agent, built once per scan from a single source file.

    mode/temperature/max_steps only hold values stated in the source;
    converters infer the rest.
    """
    name: str
    path: str
    body: str = ""
    description: Optional[str] = None
    model: Optional[str] = None
    tools: List[str] = field(default_factory=list)
    mode: Optional[str] = None
    temperature: Optional[float] = None
    max_steps: Optional[int] = None
    color: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CommandDefinition:
    name: str
    path: str
    body: str = ""
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SkillDefinition:
    name: str
    path: str
    description: Optional[str] = None
    content: Optional[str] = None  # SKILL.md text, None when the dir has none
    is_symlink: bool = False
    symlink_target: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ScopeConfig:
    """Settings of one scope (global or a single project)."""
    model: Optional[str] = None
    small_model: Optional[str] = None
    mcp_servers: Dict[str, McpServer] = field(default_factory=dict)
    permissions: Optional[Permissions] = None
    rules: List[RulesFile] = field(default_factory=list)
    agents: List[AgentDefinition] = field(default_factory=list)
    commands: List[CommandDefinition] = field(default_factory=list)
    skills: List[SkillDefinition] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    auto_update: Optional[Union[bool, str]] = None  # True | False | "notify"
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProjectConfig(ScopeConfig):
    path: str = ""
    disabled_mcp_servers: List[str] = field(default_factory=list)
    enabled_mcp_servers: List[str] = field(default_factory=list)
    ignore_patterns: List[str] = field(default_factory=list)


@dataclass
class ModelTranslation:
    """Model id rewritten by name lookup while canonicalizing (alias map / overrides)."""

    where: str
    source: str
    target: str
    via: str


@dataclass
class CanonicalScanResult:
    source_format: AgentFormat
    global_config: ScopeConfig = field(default_factory=ScopeConfig)
    projects: List[ProjectConfig] = field(default_factory=list)
    history: Optional[Any] = None
    warnings: List[str] = field(default_factory=list)
    # Notes only, not part of the model itself
    model_translations: List[ModelTranslation] = field(default_factory=list, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.source_format.value,
            "global": asdict(self.global_config),
            "projects": [asdict(p) for p in self.projects],
            "warnings": list(self.warnings),
        }


# =============================================================================
# REPORTS & RESULTS
# =============================================================================


@dataclass
class ReportItem:
    category: str
    source: str
    target: str
    details: Optional[str] = None


@dataclass
class SkippedItem:
    category: str
    source: str
    details: Optional[str] = None


@dataclass
class ConversionReport:
    converted: List[ReportItem] = field(default_factory=list)
    skipped: List[SkippedItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    manual_actions: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    def add_converted(self, category: str, source: str, target: str, details: Optional[str] = None) -> None:
        self.converted.append(ReportItem(category, source, target, details))

    def add_skipped(self, category: str, source: str, details: Optional[str] = None) -> None:
        self.skipped.append(SkippedItem(category, source, details))

    def merge(self, other: "ConversionReport") -> "ConversionReport":
        self.converted.extend(other.converted)
        self.skipped.extend(other.skipped)
        self.warnings.extend(other.warnings)
        self.manual_actions.extend(other.manual_actions)
        self.errors.extend(other.errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "converted": [asdict(i) for i in self.converted],
            "skipped": [asdict(i) for i in self.skipped],
            "warnings": list(self.warnings),
            "manualActions": list(self.manual_actions),
            "errors": list(self.errors),
        }


@dataclass
class ConversionOutput:
    """In-memory file set produced by a converter (absolute path -> content)."""
    source_format: AgentFormat
    target_format: AgentFormat
    files: Dict[str, str] = field(default_factory=dict)
    report: ConversionReport = field(default_factory=ConversionReport)
    # Converted chat sessions (HistoryConversion); only set for an OpenCode target
    history: Optional[Any] = None


@dataclass
class WriteResult:
    files_written: List[str] = field(default_factory=list)
    files_skipped: List[str] = field(default_factory=list)
    backup_dir: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "filesWritten": list(self.files_written),
            "filesSkipped": list(self.files_skipped),
            "errors": list(self.errors),
        }
        if self.backup_dir:
            data["backupDir"] = self.backup_dir
        return data


@dataclass
class RestoreResult:
    restored: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"restored": list(self.restored), "removed": list(self.removed), "errors": list(self.errors)}


@dataclass(frozen=True)
class DiffEntry:
    category: str  # mcp | agents | commands | skills | model | project
    key: str
    project: Optional[str] = None


@dataclass
class DiffSummary:
    only_in_source: List[DiffEntry] = field(default_factory=list)
    only_in_target: List[DiffEntry] = field(default_factory=list)
    in_both: List[DiffEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        def _entries(items: List[DiffEntry]) -> List[Dict[str, Any]]:
            return [{k: v for k, v in asdict(e).items() if v is not None} for e in items]

        return {
            "onlyInSource": _entries(self.only_in_source),
            "onlyInTarget": _entries(self.only_in_target),
            "inBoth": _entries(self.in_both),
        }


@dataclass
class ValidationIssue:
    path: str
    message: str


@dataclass
class ValidationResult:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [asdict(e) for e in self.errors],
            "warnings": list(self.warnings),
        }


@dataclass
class BackupInfo:
    """Metadata about one backup directory."""
    id: str
    path: Path
    created: str
    description: str = ""
    files: List[Dict[str, str]] = field(default_factory=list)
    new_files: List[str] = field(default_factory=list)
