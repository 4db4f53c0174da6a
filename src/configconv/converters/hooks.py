"""
Claude Code hooks -> OpenCode plugin stub.

settings.json:
    "hooks": {"PreToolUse": [{"matcher": "Bash", "hooks": [{"type": "command", "command": "..."}]}]}

OpenCode has no hooks, only plugins (TypeScript, loaded from plugins/). Each command
hook becomes a shell call inside the matching plugin handler; events without an
equivalent are kept as comments so nothing is lost.

Reference: https://opencode.ai/docs/plugins/
"""

import json
from typing import Any, Dict, List, NamedTuple, Optional

PLUGIN_FILENAME = "cc-hooks.ts"

# Claude Code hook event -> OpenCode plugin handler
EVENT_HANDLERS: Dict[str, str] = {
    "PreToolUse": "tool.execute.before",
    "PostToolUse": "tool.execute.after",
    "UserPromptSubmit": "chat.message",
}

HEADER = """\
/**
 * Generated by configconv from Claude Code hooks.
 * Review and customize before relying on it.
 *
 * PreToolUse -> tool.execute.before
 * PostToolUse -> tool.execute.after
 * UserPromptSubmit -> chat.message
 * Other events have no direct equivalent and are kept as comments.
 */
import type { Plugin } from "@opencode-ai/plugin"
"""


class HookCommand(NamedTuple):
    event: str
    matcher: Optional[str]
    command: str


def hook_commands(hooks: Any) -> List[HookCommand]:
    """Moi hook type "command" hop le, theo thu tu trong settings. Entry sai dang bi bo qua."""
    commands: List[HookCommand] = []
    if not isinstance(hooks, dict):
        return commands
    for event, entries in hooks.items():
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            matcher = entry.get("matcher")
            if not isinstance(matcher, str) or matcher.strip() in ("", "*"):
                matcher = None
            for action in entry.get("hooks") or []:
                if isinstance(action, dict) and action.get("type") == "command" and action.get("command"):
                    commands.append(HookCommand(str(event), matcher, str(action["command"])))
    return commands


def _template_literal(command: str) -> str:
    escaped = command.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
    return f"`{escaped}`"


def _handler(handler: str, commands: List[HookCommand]) -> List[str]:
    tool_hook = handler.startswith("tool.")
    lines = [f'    "{handler}": async (input, output) => {{']
    for hook in commands:
        lines.append(f"      // {hook.event}" + (f", matcher: {hook.matcher}" if hook.matcher else ""))
        call = f"await ${_template_literal(hook.command)}.nothrow()"
        if tool_hook and hook.matcher:
            # Claude Code matchers are tool-name regexes ("Edit|Write")
            pattern = json.dumps(f"^(?:{hook.matcher})$")
            lines.append(f'      if (new RegExp({pattern}, "i").test(input.tool)) {{')
            lines.append(f"        {call}")
            lines.append("      }")
        else:
            lines.append(f"      {call}")
    lines.append("    },")
    return lines


def generate_plugin(commands: List[HookCommand]) -> str:
    """Hook commands -> noi dung file TypeScript cua plugin."""
    by_handler: Dict[str, List[HookCommand]] = {}
    unsupported: List[HookCommand] = []
    for hook in commands:
        handler = EVENT_HANDLERS.get(hook.event)
        if handler is None:
            unsupported.append(hook)
        else:
            by_handler.setdefault(handler, []).append(hook)

    body: List[str] = []
    for handler, hooks in by_handler.items():
        body.extend(_handler(handler, hooks))
    if unsupported:
        if body:
            body.append("")
        body.append("    // No OpenCode equivalent, port by hand:")
        for hook in unsupported:
            matcher = f" [{hook.matcher}]" if hook.matcher else ""
            body.append(f"    // {hook.event}{matcher}: {' '.join(hook.command.splitlines())}")

    lines = [HEADER, "export const ClaudeCodeHooks: Plugin = async ({ $ }) => {", "  return {"]
    lines.extend(body)
    lines.extend(["  }", "}", ""])
    return "\n".join(lines)
