"""
Permission model translation.

Claude Code: allow/deny/ask lists of "Tool" or "Tool(pattern)", plus defaultMode
Cursor:      cli-config.json allow/deny lists, same string shape ("Shell(git *)")
Canonical / OpenCode: {"*": action, "bash": "ask", "edit": {"src/**": "allow"}}
"""

import copy
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from configconv.core.types import ConversionReport, Permissions

ACTIONS = ("allow", "deny", "ask")

# Claude Code tool name -> canonical
TOOL_NAME_MAP: Dict[str, str] = {
    "Read": "read",
    "Write": "write",
    "Edit": "edit",
    "MultiEdit": "edit",
    "Bash": "bash",
    "Glob": "glob",
    "Grep": "grep",
    "WebFetch": "webfetch",
    "WebSearch": "websearch",
    "Task": "task",
    "TodoRead": "todoread",
    "TodoWrite": "todowrite",
    "Skill": "skill",
}

# canonical -> Claude Code (first spelling wins: edit -> Edit)
CLAUDE_TOOL_NAMES: Dict[str, str] = {}
for _cc_name, _canonical in TOOL_NAME_MAP.items():
    CLAUDE_TOOL_NAMES.setdefault(_canonical, _cc_name)

CURSOR_TOOL_MAP: Dict[str, str] = {
    "Shell": "bash",
    "Read": "read",
    "Write": "write",
    "Edit": "edit",
}
CURSOR_TOOL_NAMES: Dict[str, str] = {v: k for k, v in CURSOR_TOOL_MAP.items()}

_RE_TOOL_PATTERN = re.compile(r"^(\w+)\((.+)\)$")
_RE_TOOL_NAME = re.compile(r"^\w+$")


def parse_tool_pattern(raw: str) -> Optional[Tuple[str, str]]:
    """'Bash(git *)' -> ('Bash', 'git *'); 'Read' -> ('Read', '*'); garbage -> None."""
    if not isinstance(raw, str):
        return None
    raw = raw.strip()
    match = _RE_TOOL_PATTERN.match(raw)
    if match:
        return match.group(1), match.group(2)
    if _RE_TOOL_NAME.match(raw):
        return raw, "*"
    return None


def set_action(permission: Permissions, tool: str, pattern: str, action: str) -> None:
    existing = permission.get(tool)
    if pattern == "*":
        if isinstance(existing, dict):
            existing["*"] = action
        else:
            permission[tool] = action
    elif isinstance(existing, dict):
        existing[pattern] = action
    elif isinstance(existing, str):
        permission[tool] = {"*": existing, pattern: action}
    else:
        permission[tool] = {pattern: action}


def simplify_permissions(permission: Permissions) -> Permissions:
    """{"bash": {"*": "ask"}} -> {"bash": "ask"}"""
    for key, value in list(permission.items()):
        if isinstance(value, dict) and list(value.keys()) == ["*"]:
            permission[key] = value["*"]
    return permission


def _apply_patterns(
    patterns: Iterable[Any],
    action: str,
    permission: Permissions,
    tool_map: Dict[str, str],
    warnings: List[str],
) -> None:
    for raw in patterns:
        parsed = parse_tool_pattern(raw)
        if parsed is None:
            warnings.append(f'Could not parse tool pattern "{raw}"; dropped')
            continue
        tool, pattern = parsed
        set_action(permission, tool_map.get(tool, tool), pattern, action)


def claude_to_canonical(
    block: Optional[Dict[str, Any]],
    allowed_tools: Optional[List[str]] = None,
    warnings: Optional[List[str]] = None,
) -> Optional[Permissions]:
    """Claude Code permissions block (+ allowedTools of ~/.claude.json) -> canonical."""
    if not isinstance(block, dict) and not allowed_tools:
        return None
    warnings = warnings if warnings is not None else []
    block = block if isinstance(block, dict) else {}

    permission: Permissions = {"*": "allow" if block.get("defaultMode") == "bypassPermissions" else "ask"}
    for action in ACTIONS:
        entries = block.get(action) or []
        if isinstance(entries, list):
            _apply_patterns(entries, action, permission, TOOL_NAME_MAP, warnings)
    if allowed_tools:
        _apply_patterns(allowed_tools, "allow", permission, TOOL_NAME_MAP, warnings)
    return simplify_permissions(permission)


def cursor_to_canonical(block: Optional[Dict[str, Any]], warnings: Optional[List[str]] = None) -> Optional[Permissions]:
    if not isinstance(block, dict):
        return None
    warnings = warnings if warnings is not None else []
    permission: Permissions = {"*": "ask"}
    for action in ("allow", "deny"):
        entries = block.get(action) or []
        if isinstance(entries, list):
            _apply_patterns(entries, action, permission, CURSOR_TOOL_MAP, warnings)
    return simplify_permissions(permission)


def opencode_to_canonical(block: Any, warnings: Optional[List[str]] = None) -> Optional[Permissions]:
    """OpenCode permission: "allow" shorthand or {tool: action | {pattern: action}}."""
    if isinstance(block, str):
        return {"*": block}
    if not isinstance(block, dict):
        return None
    warnings = warnings if warnings is not None else []
    permission: Permissions = {}
    for tool, value in block.items():
        if isinstance(value, str) or (isinstance(value, dict) and all(isinstance(v, str) for v in value.values())):
            permission[str(tool)] = copy.deepcopy(value)
        else:
            warnings.append(f'Unsupported permission value for "{tool}"; dropped')
    return simplify_permissions(permission)


# =============================================================================
# CANONICAL -> TARGET
# =============================================================================


def _iter_rules(permission: Permissions):
    """Yield (tool, pattern, action) in insertion order."""
    for tool, value in permission.items():
        if isinstance(value, dict):
            for pattern, action in value.items():
                yield tool, pattern, action
        else:
            yield tool, "*", value


def canonical_to_claude(permission: Permissions, report: ConversionReport, source: str = "") -> Dict[str, Any]:
    """
    Canonical -> Claude Code permissions block.

    "*": allow -> defaultMode bypassPermissions; "*": ask is Claude Code's own default.
    """
    block: Dict[str, Any] = {}
    lists: Dict[str, List[str]] = {action: [] for action in ACTIONS}

    for tool, pattern, action in _iter_rules(permission):
        if action not in ACTIONS:
            report.warnings.append(f'Permission "{tool}" has unknown action "{action}"; skipped')
            continue
        if tool == "*":
            if pattern != "*":
                report.add_skipped("permissions", f"{source}*.{pattern}", "Claude Code has no global patterns")
            elif action == "allow":
                block["defaultMode"] = "bypassPermissions"
            elif action == "deny":
                report.add_skipped("permissions", f'{source}"*": "deny"', "Claude Code has no deny-all mode")
            continue
        name = CLAUDE_TOOL_NAMES.get(tool, tool)
        entry = name if pattern == "*" else f"{name}({pattern})"
        if entry not in lists[action]:
            lists[action].append(entry)

    for action in ACTIONS:
        if lists[action]:
            block[action] = lists[action]
    return block


def canonical_to_cursor(
    permission: Permissions,
    report: ConversionReport,
    keep_unknown: bool = False,
    source: str = "",
) -> Dict[str, List[str]]:
    """Canonical -> Cursor cli-config allow/deny lists. Cursor has no "ask"."""
    lists: Dict[str, List[str]] = {"allow": [], "deny": []}
    for tool, pattern, action in _iter_rules(permission):
        if tool == "*":
            continue
        if tool in CURSOR_TOOL_NAMES:
            name = CURSOR_TOOL_NAMES[tool]
        elif keep_unknown:
            name = tool
        else:
            report.add_skipped("permissions", f"{source}{tool}", "No Cursor equivalent for this tool")
            report.warnings.append(f'Permission for tool "{tool}" has no Cursor equivalent; skipped')
            continue
        if action not in lists:
            report.add_skipped("permissions", f"{source}{tool}: {action}", "Cursor only supports allow/deny")
            continue
        entry = name if pattern == "*" else f"{name}({pattern})"
        if entry not in lists[action]:
            lists[action].append(entry)
    return {action: entries for action, entries in lists.items() if entries}
