"""OpenCode scan -> canonical model."""

from typing import Any, Dict, List, Optional

from configconv.canonical._common import (
    always_rule,
    command_from_markdown,
    extra_keys,
    skill_from_scan,
    str_dict,
    str_list,
    str_or_none,
)
from configconv.converters.model_id import canonical_model
from configconv.converters.permissions import opencode_to_canonical
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
from configconv.scanners.opencode import OpenCodeScanResult, OpenCodeScopeScan

MCP_KEYS = ("type", "command", "environment", "url", "headers", "enabled", "oauth")
# tools / permission stay in extra as written; `tools` below is derived from them
AGENT_KEYS = ("description", "mode", "model", "temperature", "steps", "color")
CONFIG_KEYS = ("model", "small_model", "mcp", "permission", "autoupdate")


def mcp_from_opencode(name: str, raw: Dict[str, Any]) -> McpServer:
    if not isinstance(raw, dict):
        raise TypeError(f'MCP server "{name}" is not an object')
    extra = extra_keys(raw, MCP_KEYS)
    enabled = raw.get("enabled", True) is not False

    if raw.get("type") == "remote":
        oauth = raw.get("oauth")
        if oauth is not None and not isinstance(oauth, dict):
            extra["oauth"] = oauth
            oauth = None
        return McpServer(
            name=name,
            type="remote",
            url=str_or_none(raw.get("url")),
            headers=str_dict(raw.get("headers")),
            enabled=enabled,
            oauth=dict(oauth) if oauth is not None else None,
            extra=extra,
        )

    command = raw.get("command")
    if isinstance(command, str):
        command = [command]
    command = str_list(command)
    return McpServer(
        name=name,
        type="local",
        command=command[0] if command else None,
        args=command[1:],
        env=str_dict(raw.get("environment")),
        enabled=enabled,
        extra=extra,
    )


def _agent_tools(fm: Dict[str, Any]) -> List[str]:
    tools: List[str] = []
    declared = fm.get("tools")
    if isinstance(declared, dict):
        tools.extend(str(name) for name, on in declared.items() if on)
    elif isinstance(declared, list):
        tools.extend(str(name) for name in declared)
    permission = fm.get("permission")
    if isinstance(permission, dict):
        for name, action in permission.items():
            if name != "*" and action != "deny" and str(name) not in tools:
                tools.append(str(name))
    return tools


def _agent(md: MarkdownFile, overrides: Dict[str, str], notes: List[ModelTranslation]) -> AgentDefinition:
    fm = md.frontmatter
    return AgentDefinition(
        name=md.name,
        path=md.path,
        body=md.body,
        description=str_or_none(fm.get("description")),
        model=canonical_model(fm.get("model"), overrides, notes=notes, where=f"Agent '{md.name}'"),
        tools=_agent_tools(fm),
        mode=fm.get("mode"),
        temperature=fm.get("temperature"),
        max_steps=fm.get("steps"),
        color=str_or_none(fm.get("color")),
        extra=extra_keys(fm, AGENT_KEYS),
    )


def _scope(
    scan: OpenCodeScopeScan,
    config: ScopeConfig,
    overrides: Dict[str, str],
    warnings: List[str],
    notes: List[ModelTranslation],
) -> None:
    label = "Global" if scan.path is None else scan.path
    data = scan.config or {}
    config.model = canonical_model(data.get("model"), overrides, notes=notes, where=f"{label} model")
    config.small_model = canonical_model(data.get("small_model"), overrides, notes=notes, where=f"{label} small_model")
    config.extra = extra_keys(data, CONFIG_KEYS)

    mcp = data.get("mcp")
    if isinstance(mcp, dict):
        for name, raw in mcp.items():
            try:
                config.mcp_servers[name] = mcp_from_opencode(name, raw)
            except (TypeError, ValueError) as e:
                warnings.append(f"{scan.config_path}: {e}; skipped")

    if "permission" in data:
        config.permissions = opencode_to_canonical(data.get("permission"), warnings)
    if "autoupdate" in data:
        config.auto_update = data.get("autoupdate")

    if scan.agents_md is not None:
        config.rules.append(always_rule(scan.agents_md_path, "AGENTS.md", scan.agents_md))
    config.agents = [_agent(md, overrides, notes) for md in scan.agents]
    config.commands = [command_from_markdown(md) for md in scan.commands]
    config.skills = [skill_from_scan(s) for s in scan.skills]


def opencode_to_canonical_result(
    scan: OpenCodeScanResult, model_overrides: Optional[Dict[str, str]] = None
) -> CanonicalScanResult:
    overrides = model_overrides or {}
    result = CanonicalScanResult(source_format=AgentFormat.OPENCODE, warnings=list(scan.warnings))

    if scan.global_scan is not None:
        _scope(scan.global_scan, result.global_config, overrides, result.warnings, result.model_translations)
    for project_scan in scan.projects:
        project = ProjectConfig(path=project_scan.path or "")
        _scope(project_scan, project, overrides, result.warnings, result.model_translations)
        result.projects.append(project)
    result.history = scan.history
    return result
