"""
configconv - Agent configuration converter.

Scans, converts and migrates agent configuration between:
- Claude Code (~/.claude, .claude/, CLAUDE.md, .mcp.json)
- OpenCode (~/.config/opencode, opencode.json, .opencode/)
- Cursor (~/.cursor, .cursor/)
"""

__version__ = "0.1.0"

__all__ = [
    "canonical",
    "cli",
    "config",
    "converters",
    "core",
    "history",
    "scanners",
    "services",
    "utils",
]
