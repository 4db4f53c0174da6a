"""
On-disk locations for every supported ecosystem.

Every function resolves HOME / XDG variables at call time so a scan
always reflects the current environment.
"""

import os
import sys
from pathlib import Path


def home() -> Path:
    return Path.home()


def _xdg(var: str, default: Path) -> Path:
    value = os.environ.get(var)
    return Path(value) if value else default


# =============================================================================
# CLAUDE CODE
# =============================================================================


def cc_dir() -> Path:
    return home() / ".claude"


def cc_settings_path() -> Path:
    return cc_dir() / "settings.json"


def cc_user_state_path() -> Path:
    """~/.claude.json: global MCP servers + per-project state."""
    return home() / ".claude.json"


def cc_global_claude_md_path() -> Path:
    return cc_dir() / "CLAUDE.md"


def cc_global_agents_dir() -> Path:
    return cc_dir() / "agents"


def cc_global_commands_dir() -> Path:
    return cc_dir() / "commands"


def cc_global_skills_dir() -> Path:
    return cc_dir() / "skills"


def cc_global_rules_dir() -> Path:
    return cc_dir() / "rules"


def shared_agents_skills_dir() -> Path:
    """~/.agents/skills, shared across tools."""
    return home() / ".agents" / "skills"


def cc_history_path() -> Path:
    return cc_dir() / "history.jsonl"


def cc_projects_dir() -> Path:
    return cc_dir() / "projects"


def cc_project_settings_path(project: Path) -> Path:
    return project / ".claude" / "settings.local.json"


def cc_project_mcp_json_path(project: Path) -> Path:
    return project / ".mcp.json"


def cc_project_agents_dir(project: Path) -> Path:
    return project / ".claude" / "agents"


def cc_project_commands_dir(project: Path) -> Path:
    return project / ".claude" / "commands"


def cc_project_skills_dir(project: Path) -> Path:
    return project / ".claude" / "skills"


def cc_project_rules_dir(project: Path) -> Path:
    return project / ".claude" / "rules"


def cc_project_claude_md_path(project: Path) -> Path:
    return project / "CLAUDE.md"


def project_agents_md_path(project: Path) -> Path:
    return project / "AGENTS.md"


# =============================================================================
# OPENCODE
# =============================================================================


def oc_config_dir() -> Path:
    return _xdg("XDG_CONFIG_HOME", home() / ".config") / "opencode"


def oc_global_config_path() -> Path:
    return oc_config_dir() / "opencode.json"


def oc_global_agents_md_path() -> Path:
    return oc_config_dir() / "AGENTS.md"


def oc_global_agents_dir() -> Path:
    return oc_config_dir() / "agents"


def oc_global_commands_dir() -> Path:
    return oc_config_dir() / "commands"


def oc_global_plugins_dir() -> Path:
    return oc_config_dir() / "plugins"


def oc_global_skills_dir() -> Path:
    return oc_config_dir() / "skills"


def oc_data_dir() -> Path:
    return _xdg("XDG_DATA_HOME", home() / ".local" / "share") / "opencode"


def oc_storage_dir() -> Path:
    return oc_data_dir() / "storage"


def oc_prompt_history_path() -> Path:
    return _xdg("XDG_STATE_HOME", home() / ".local" / "state") / "opencode" / "prompt-history.jsonl"


def oc_project_config_path(project: Path) -> Path:
    return project / "opencode.json"


def oc_project_agents_dir(project: Path) -> Path:
    return project / ".opencode" / "agents"


def oc_project_commands_dir(project: Path) -> Path:
    return project / ".opencode" / "commands"


def oc_project_plugins_dir(project: Path) -> Path:
    return project / ".opencode" / "plugins"


def oc_project_skills_dir(project: Path) -> Path:
    return project / ".opencode" / "skills"


# =============================================================================
# CURSOR
# =============================================================================


def cursor_dir() -> Path:
    return home() / ".cursor"


def cursor_global_mcp_json_path() -> Path:
    return cursor_dir() / "mcp.json"


def cursor_cli_config_path() -> Path:
    return cursor_dir() / "cli-config.json"


def cursor_global_agents_dir() -> Path:
    return cursor_dir() / "agents"


def cursor_global_commands_dir() -> Path:
    return cursor_dir() / "commands"


def cursor_global_skills_dir() -> Path:
    return cursor_dir() / "skills"


def cursor_project_mcp_json_path(project: Path) -> Path:
    return project / ".cursor" / "mcp.json"


def cursor_project_rules_dir(project: Path) -> Path:
    return project / ".cursor" / "rules"


def cursor_project_agents_dir(project: Path) -> Path:
    return project / ".cursor" / "agents"


def cursor_project_commands_dir(project: Path) -> Path:
    return project / ".cursor" / "commands"


def cursor_project_skills_dir(project: Path) -> Path:
    return project / ".cursor" / "skills"


def cursor_legacy_rules_path(project: Path) -> Path:
    return project / ".cursorrules"


def cursor_user_dir() -> Path:
    """Cursor's VS Code style user data dir (chat history lives here)."""
    if sys.platform == "darwin":
        return home() / "Library" / "Application Support" / "Cursor" / "User"
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else home() / "AppData" / "Roaming"
        return base / "Cursor" / "User"
    return _xdg("XDG_CONFIG_HOME", home() / ".config") / "Cursor" / "User"


def cursor_workspace_storage_dir() -> Path:
    return cursor_user_dir() / "workspaceStorage"


def cursor_global_state_db_path() -> Path:
    return cursor_user_dir() / "globalStorage" / "state.vscdb"
