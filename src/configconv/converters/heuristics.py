"""
Pure inference helpers used when a target needs a value the source never stated.

All functions take (name, description, tools) and are deterministic.
"""

import re
from typing import Iterable, List, Optional, Tuple

from configconv.converters.permissions import TOOL_NAME_MAP
from configconv.core.types import Permissions

PRIMARY_KEYWORDS = (
    "build",
    "implement",
    "create",
    "develop",
    "main",
    "primary",
    "default",
    "general",
    "full",
    "orchestrat",
)

SUBAGENT_KEYWORDS = (
    "review",
    "audit",
    "analyze",
    "check",
    "helper",
    "assist",
    "search",
    "find",
    "explore",
    "scan",
    "inspect",
    "verify",
    "validate",
    "lint",
    "format",
    "test",
    "debug",
    "document",
    "explain",
)

_RE_PRECISE = re.compile(r"security|audit|review|lint|check|verify|validate|test")
_RE_CODING = re.compile(r"code|implement|build|develop|engineer|refactor|fix|debug")
_RE_CREATIVE = re.compile(r"document|write|explain|create|design|architect|plan")

DEFAULT_TEMPERATURE = 0.3


def _haystack(name: str, description: Optional[str]) -> str:
    return f"{name} {description or ''}".lower()


def infer_mode(name: str, description: Optional[str] = None, tools: Optional[List[str]] = None) -> str:
    """
    'builder' -> primary, 'code-reviewer' -> subagent.

    Primary keywords thang truoc; khong khop gi -> primary.
    """
    text = _haystack(name, description)
    if any(keyword in text for keyword in PRIMARY_KEYWORDS):
        return "primary"
    if any(keyword in text for keyword in SUBAGENT_KEYWORDS):
        return "subagent"
    return "primary"


def infer_temperature(name: str, description: Optional[str] = None, tools: Optional[List[str]] = None) -> float:
    text = _haystack(name, description)
    if _RE_PRECISE.search(text):
        return 0.1
    if _RE_CODING.search(text):
        return 0.3
    if _RE_CREATIVE.search(text):
        return 0.5
    return DEFAULT_TEMPERATURE


def canonical_tool_name(tool: str) -> Optional[str]:
    """'Bash' -> 'bash'; names already canonical pass; unknown -> None."""
    if tool in TOOL_NAME_MAP:
        return TOOL_NAME_MAP[tool]
    if tool in TOOL_NAME_MAP.values():
        return tool
    return None


def tools_to_permissions(tools: Iterable[str], allow_unknown: bool = True) -> Tuple[Permissions, List[str]]:
    """
    Tool list -> permission map. bash -> "ask", everything else -> "allow".

    Returns:
        (permissions, skipped tool names). Unknown tools are kept verbatim when
        allow_unknown, otherwise returned in the skipped list.
    """
    permission: Permissions = {}
    skipped: List[str] = []
    for tool in tools:
        tool = tool.strip()
        if not tool:
            continue
        mapped = canonical_tool_name(tool)
        if mapped is None:
            if allow_unknown:
                permission[tool] = "allow"
            else:
                skipped.append(tool)
            continue
        permission[mapped] = "ask" if mapped == "bash" else "allow"
    return permission, skipped
