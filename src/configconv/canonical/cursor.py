"""Cursor scan -> canonical model."""

from typing import Any, Dict, List, Optional

from configconv.canonical._common import (
    always_rule,
    extra_keys,
    skill_from_scan,
    str_dict,
    str_list,
    str_or_none,
)
from configconv.converters.permissions import cursor_to_canonical
from configconv.core.types import (
    AgentDefinition,
    AgentFormat,
    CanonicalScanResult,
    CommandDefinition,
    McpServer,
    ProjectConfig,
    RulesFile,
    ScopeConfig,
)
from configconv.scanners._common import MarkdownFile
from configconv.scanners.cursor import CursorGlobalScan, CursorProjectScan, CursorScanResult

MCP_KEYS = ("type", "command", "args", "env", "url", "headers", "auth")
AGENT_KEYS = ("name", "description")


def rule_type_for(frontmatter: Dict[str, Any]) -> str:
    """alwaysApply -> always, globs -> file-scoped, description -> intelligent, else manual."""
    if frontmatter.get("alwaysApply") is True:
        return "always"
    if frontmatter.get("globs"):
        return "file-scoped"
    if frontmatter.get("description"):
        return "intelligent"
    return "manual"


def normalize_globs(globs: Any) -> Optional[str]:
    if not globs:
        return None
    if isinstance(globs, list):
        return ",".join(str(g) for g in globs)
    return str(globs)


def mcp_from_cursor(name: str, raw: Dict[str, Any]) -> McpServer:
    if not isinstance(raw, dict):
        raise TypeError(f'MCP server "{name}" is not an object')
    extra = extra_keys(raw, MCP_KEYS)
    if raw.get("url") and not raw.get("command"):
        oauth = None
        auth = raw.get("auth")
        if isinstance(auth, dict):
            oauth = {}
            if "CLIENT_ID" in auth:
                oauth["clientId"] = auth["CLIENT_ID"]
            if auth.get("CLIENT_SECRET"):
                oauth["clientSecret"] = auth["CLIENT_SECRET"]
            if auth.get("scopes"):
                oauth["scopes"] = auth["scopes"]
        return McpServer(
            name=name,
            type="remote",
            url=str_or_none(raw.get("url")),
            headers=str_dict(raw.get("headers")),
            oauth=oauth,
            extra=extra,
        )
    return McpServer(
        name=name,
        type="local",
        command=str_or_none(raw.get("command")),
        args=str_list(raw.get("args")),
        env=str_dict(raw.get("env")),
        extra=extra,
    )


def _mcp(mcp_json: Optional[Dict[str, Any]], source: str, warnings: List[str]) -> Dict[str, McpServer]:
    servers: Dict[str, McpServer] = {}
    raw_servers = (mcp_json or {}).get("mcpServers")
    if not isinstance(raw_servers, dict):
        return servers
    for name, raw in raw_servers.items():
        try:
            servers[name] = mcp_from_cursor(name, raw)
        except (TypeError, ValueError) as e:
            warnings.append(f"{source}: {e}; skipped")
    return servers


def _rule(md: MarkdownFile) -> RulesFile:
    fm = md.frontmatter
    return RulesFile(
        path=md.path,
        name=md.name,
        content=md.content,
        rule_type=rule_type_for(fm),
        always_apply=fm.get("alwaysApply") is True,
        globs=normalize_globs(fm.get("globs")),
        description=str_or_none(fm.get("description")),
    )


def _agent(md: MarkdownFile) -> AgentDefinition:
    fm = md.frontmatter
    return AgentDefinition(
        name=md.name,
        path=md.path,
        body=md.body,
        description=str_or_none(fm.get("description")),
        extra=extra_keys(fm, AGENT_KEYS),
    )


def _command(md: MarkdownFile) -> CommandDefinition:
    # Cursor commands are plain markdown
    return CommandDefinition(name=md.name, path=md.path, body=md.content.strip())


def _global(scan: CursorGlobalScan, warnings: List[str]) -> ScopeConfig:
    config = ScopeConfig(mcp_servers=_mcp(scan.mcp_json, "~/.cursor/mcp.json", warnings))
    cli_config = scan.cli_config or {}
    if "permissions" in cli_config:
        config.permissions = cursor_to_canonical(cli_config.get("permissions"), warnings)
    config.extra = extra_keys(cli_config, ("permissions",))
    config.agents = [_agent(md) for md in scan.agents]
    config.commands = [_command(md) for md in scan.commands]
    config.skills = [skill_from_scan(s) for s in scan.skills]
    return config


def _project(scan: CursorProjectScan, warnings: List[str]) -> ProjectConfig:
    project = ProjectConfig(
        path=scan.path,
        mcp_servers=_mcp(scan.mcp_json, f"{scan.path}/.cursor/mcp.json", warnings),
    )
    project.rules = [_rule(md) for md in scan.rules]
    if scan.agents_md is not None:
        project.rules.append(always_rule(scan.agents_md_path, "AGENTS.md", scan.agents_md))
    if scan.cursor_rules is not None:
        project.rules.append(always_rule(scan.cursor_rules_path, ".cursorrules", scan.cursor_rules))
    project.agents = [_agent(md) for md in scan.agents]
    project.commands = [_command(md) for md in scan.commands]
    project.skills = [skill_from_scan(s) for s in scan.skills]
    return project


def cursor_to_canonical_result(scan: CursorScanResult) -> CanonicalScanResult:
    result = CanonicalScanResult(source_format=AgentFormat.CURSOR, warnings=list(scan.warnings))
    if scan.global_scan is not None:
        result.global_config = _global(scan.global_scan, result.warnings)
    result.projects = [_project(p, result.warnings) for p in scan.projects]
    result.history = scan.history
    return result
