"""Claude Code scan -> canonical model."""

from typing import Any, Dict, List, Optional

from configconv.canonical._common import (
    always_rule,
    command_from_markdown,
    extra_keys,
    skill_from_scan,
    split_tools,
    str_dict,
    str_list,
    str_or_none,
)
from configconv.converters.model_id import canonical_model, detect_provider
from configconv.converters.permissions import claude_to_canonical
from configconv.core.types import (
    AgentDefinition,
    AgentFormat,
    CanonicalScanResult,
    McpServer,
    ModelTranslation,
    ProjectConfig,
    ScopeConfig,
)
from configconv.scanners._common import MarkdownFile
from configconv.scanners.claude_code import ClaudeCodeScanResult, ClaudeGlobalScan, ClaudeProjectScan

MCP_KEYS = ("type", "command", "args", "env", "url", "headers")
AGENT_KEYS = ("name", "description", "model", "tools", "color")
# settings.json keys with a canonical field; everything else is kept opaque
# (autoUpdatesChannel too, so the channel name survives a round trip)
SETTINGS_KEYS = ("model", "env", "permissions", "mcpServers")


def mcp_from_claude(name: str, raw: Dict[str, Any]) -> McpServer:
    if not isinstance(raw, dict):
        raise TypeError(f'MCP server "{name}" is not an object')
    remote = raw.get("type") in ("sse", "http") or (bool(raw.get("url")) and not raw.get("command"))
    if remote:
        return McpServer(
            name=name,
            type="remote",
            url=str_or_none(raw.get("url")),
            headers=str_dict(raw.get("headers")),
            extra=extra_keys(raw, MCP_KEYS),
        )
    return McpServer(
        name=name,
        type="local",
        command=str_or_none(raw.get("command")),
        args=str_list(raw.get("args")),
        env=str_dict(raw.get("env")),
        extra=extra_keys(raw, MCP_KEYS),
    )


def _merge_mcp(target: Dict[str, McpServer], servers: Any, source: str, warnings: List[str]) -> None:
    if not isinstance(servers, dict):
        return
    for name, raw in servers.items():
        try:
            target[name] = mcp_from_claude(name, raw)
        except (TypeError, ValueError) as e:
            warnings.append(f"{source}: {e}; skipped")


def _agent(md: MarkdownFile, overrides: Dict[str, str], provider: str, notes: List[ModelTranslation]) -> AgentDefinition:
    fm = md.frontmatter
    return AgentDefinition(
        name=md.name,
        path=md.path,
        body=md.body,
        description=str_or_none(fm.get("description")),
        model=canonical_model(fm.get("model"), overrides, provider, notes, f"Agent '{md.name}'"),
        tools=split_tools(fm.get("tools")),
        color=str_or_none(fm.get("color")),
        extra=extra_keys(fm, AGENT_KEYS),
    )


def _global(
    scan: ClaudeGlobalScan,
    user_state: Optional[Dict[str, Any]],
    overrides: Dict[str, str],
    warnings: List[str],
    notes: List[ModelTranslation],
) -> ScopeConfig:
    settings = scan.settings or {}
    env = str_dict(settings.get("env"))
    provider = detect_provider(env, settings.get("model") if isinstance(settings.get("model"), str) else None)

    config = ScopeConfig(
        model=canonical_model(settings.get("model"), overrides, provider, notes, "Global model"),
        env=env,
        extra=extra_keys(settings, SETTINGS_KEYS),
    )
    if "permissions" in settings:
        config.permissions = claude_to_canonical(settings.get("permissions"), None, warnings)
    if settings.get("autoUpdatesChannel"):
        config.auto_update = True

    _merge_mcp(config.mcp_servers, (user_state or {}).get("mcpServers"), "~/.claude.json", warnings)

    if scan.claude_md is not None:
        config.rules.append(always_rule(scan.claude_md_path, "CLAUDE.md", scan.claude_md))
    config.agents = [_agent(md, overrides, provider, notes) for md in scan.agents]
    config.commands = [command_from_markdown(md) for md in scan.commands]
    config.skills = [skill_from_scan(s) for s in scan.skills]
    return config


def _project(
    scan: ClaudeProjectScan,
    overrides: Dict[str, str],
    provider: str,
    warnings: List[str],
    notes: List[ModelTranslation],
) -> ProjectConfig:
    local = scan.settings_local or {}
    entry = scan.state_entry

    project = ProjectConfig(
        path=scan.path,
        model=canonical_model(local.get("model"), overrides, provider, notes, f"{scan.path} model"),
        env=str_dict(local.get("env")),
        extra=extra_keys(local, SETTINGS_KEYS),
        disabled_mcp_servers=str_list(entry.get("disabledMcpjsonServers")),
        enabled_mcp_servers=str_list(entry.get("enabledMcpjsonServers")),
        ignore_patterns=str_list(entry.get("ignorePatterns")),
    )

    # Later sources win
    _merge_mcp(project.mcp_servers, (scan.mcp_json or {}).get("mcpServers"), f"{scan.path}/.mcp.json", warnings)
    _merge_mcp(project.mcp_servers, entry.get("mcpServers"), "~/.claude.json", warnings)
    _merge_mcp(project.mcp_servers, local.get("mcpServers"), "settings.local.json", warnings)

    allowed_tools = str_list(entry.get("allowedTools"))
    if "permissions" in local or allowed_tools:
        project.permissions = claude_to_canonical(local.get("permissions"), allowed_tools, warnings)

    if scan.claude_md is not None:
        project.rules.append(always_rule(scan.claude_md_path, "CLAUDE.md", scan.claude_md))
    if scan.agents_md is not None:
        project.rules.append(always_rule(scan.agents_md_path, "AGENTS.md", scan.agents_md))

    project.agents = [_agent(md, overrides, provider, notes) for md in scan.agents]
    project.commands = [command_from_markdown(md) for md in scan.commands]
    project.skills = [skill_from_scan(s) for s in scan.skills]
    return project


def claude_code_to_canonical(
    scan: ClaudeCodeScanResult, model_overrides: Optional[Dict[str, str]] = None
) -> CanonicalScanResult:
    overrides = model_overrides or {}
    result = CanonicalScanResult(source_format=AgentFormat.CLAUDE_CODE, warnings=list(scan.warnings))

    settings = (scan.global_scan.settings if scan.global_scan else None) or {}
    provider = detect_provider(str_dict(settings.get("env")))

    if scan.global_scan is not None:
        result.global_config = _global(
            scan.global_scan, scan.user_state, overrides, result.warnings, result.model_translations
        )
    result.projects = [
        _project(p, overrides, provider, result.warnings, result.model_translations) for p in scan.projects
    ]
    result.history = scan.history
    return result
