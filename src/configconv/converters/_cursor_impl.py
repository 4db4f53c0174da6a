"""
Cursor Converter
Converts the canonical model to Cursor files.

Output structure:
- ~/.cursor/mcp.json, ~/.cursor/cli-config.json (permissions)
- ~/.cursor/{agents,commands,skills}
- <project>/.cursor/mcp.json, <project>/.cursor/rules/*.mdc
- <project>/.cursor/{agents,commands,skills}

Cursor has no global model setting and no per-agent model, tools or temperature;
those are reported as skipped.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from configconv import paths
from configconv.converters import mcp as mcp_conv
from configconv.converters._common import (
    emit_rules_verbatim,
    emit_skills,
    is_always_rule,
    item_errors,
    iter_scopes,
    report_extra,
    scope_label,
)
from configconv.converters.permissions import canonical_to_cursor
from configconv.core.converter import ConvertOptions
from configconv.core.types import (
    AgentDefinition,
    AgentFormat,
    CanonicalScanResult,
    CommandDefinition,
    ConversionOutput,
    ConversionReport,
    RulesFile,
    ScopeConfig,
)
from configconv.utils import dump_json, extract_body, sanitize_name, serialize_frontmatter

ENV_HINT = "${env:VAR}"

UNSUPPORTED_AGENT_FIELDS = ("model", "mode", "temperature", "max_steps", "color")


# =============================================================================
# MCP / PERMISSIONS
# =============================================================================


def _mcp_servers(scope: ScopeConfig, label: str, report: ConversionReport, identity: bool) -> Dict[str, Any]:
    servers: Dict[str, Any] = {}
    for name, server in scope.mcp_servers.items():
        with item_errors(report, "mcp", name):
            servers[name] = mcp_conv.to_cursor(server, identity=identity)
            report.add_converted("mcp", f"{label}: {name}", f"mcpServers.{name}", f"{server.type} server")
            report.warnings.extend(mcp_conv.secret_warnings(server, ENV_HINT))
            if not identity and not server.enabled:
                report.manual_actions.append(
                    f'MCP server "{name}" is disabled in the source. Toggle it off in Cursor Settings > MCP.'
                )
    return servers


def _cli_config(scope: ScopeConfig, report: ConversionReport, identity: bool) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if scope.permissions is not None:
        config["permissions"] = canonical_to_cursor(
            scope.permissions, report, keep_unknown=identity, source="global: "
        )
        if not identity:
            report.add_converted("permissions", "global permissions", "cli-config.json permissions")
    if identity:
        for key, value in scope.extra.items():
            config.setdefault(key, value)
    return config


def _report_scope_settings(scope: ScopeConfig, label: str, report: ConversionReport) -> None:
    """Cross-format only: scope settings Cursor cannot store."""
    if scope.model:
        report.add_skipped("config", f'{label} model: "{scope.model}"', "Cursor has no model setting in its config files")
    if scope.small_model:
        report.add_skipped("config", f'{label} small_model: "{scope.small_model}"', "Cursor has no model setting")
    if scope.env:
        report.add_skipped("config", f"{label} env ({', '.join(scope.env)})", "Cursor has no env block")
    if scope.auto_update is not None:
        report.add_skipped("config", f"{label} autoupdate", "Cursor manages its own updates")
    report_extra(report, "config", f"{label} settings", scope.extra, "Cursor")


# =============================================================================
# RULES
# =============================================================================


def convert_rule(rule: RulesFile) -> str:
    """Canonical rule -> .mdc with description / globs / alwaysApply frontmatter."""
    fm: Dict[str, Any] = {}
    if rule.description:
        fm["description"] = rule.description
    if rule.globs:
        fm["globs"] = rule.globs
    fm["alwaysApply"] = rule.always_apply or (is_always_rule(rule) and not rule.globs)
    return serialize_frontmatter(fm, extract_body(rule.content))


def _convert_rules(
    scope: ScopeConfig,
    project_path: Optional[str],
    files: Dict[str, str],
    report: ConversionReport,
) -> None:
    if project_path is None:
        for rule in scope.rules:
            report.add_skipped("rules", rule.path, "Cursor keeps user rules in its settings UI")
        if scope.rules:
            report.manual_actions.append(
                f"{len(scope.rules)} global rule files found. Paste their content into Cursor Settings > Rules."
            )
        return

    rules_dir = paths.cursor_project_rules_dir(Path(project_path))
    for rule in scope.rules:
        with item_errors(report, "rules", rule.name):
            dest = str(rules_dir / f"{sanitize_name(rule.name)}.mdc")
            files[dest] = convert_rule(rule)
            report.add_converted("rules", rule.path, dest, rule.rule_type)


# =============================================================================
# AGENTS / COMMANDS
# =============================================================================


def convert_agent(agent: AgentDefinition, report: ConversionReport, identity: bool) -> str:
    fm: Dict[str, Any] = {"name": agent.name}
    if agent.description is not None:
        fm["description"] = agent.description

    if identity:
        for key, value in agent.extra.items():
            fm.setdefault(key, value)
        return serialize_frontmatter(fm, agent.body)

    dropped = [f for f in UNSUPPORTED_AGENT_FIELDS if getattr(agent, f) is not None]
    if agent.tools:
        dropped.append("tools")
    if dropped:
        report.add_skipped("agents", agent.path, f"Cursor agents have no {', '.join(dropped)}")
    report_extra(report, "agents", agent.path, agent.extra, "Cursor", exclude=("tools", "permission"))
    return serialize_frontmatter(fm, agent.body)


def convert_command(cmd: CommandDefinition, report: ConversionReport, identity: bool) -> str:
    """Cursor commands are plain markdown, no frontmatter."""
    if not identity:
        if cmd.description:
            report.add_skipped("commands", f"{cmd.path} description", "Cursor commands have no frontmatter")
        report_extra(report, "commands", cmd.path, cmd.extra, "Cursor")
    return f"{cmd.body}\n" if cmd.body else ""


# =============================================================================
# SCOPES
# =============================================================================


def _scope_dirs(project_path: Optional[str]) -> Dict[str, Path]:
    if project_path is None:
        return {
            "mcp": paths.cursor_global_mcp_json_path(),
            "agents": paths.cursor_global_agents_dir(),
            "commands": paths.cursor_global_commands_dir(),
            "skills": paths.cursor_global_skills_dir(),
        }
    project = Path(project_path)
    return {
        "mcp": paths.cursor_project_mcp_json_path(project),
        "agents": paths.cursor_project_agents_dir(project),
        "commands": paths.cursor_project_commands_dir(project),
        "skills": paths.cursor_project_skills_dir(project),
    }


def _convert_scope(
    scope: ScopeConfig,
    project_path: Optional[str],
    files: Dict[str, str],
    report: ConversionReport,
    identity: bool,
) -> None:
    label = scope_label(project_path)
    dirs = _scope_dirs(project_path)

    servers = _mcp_servers(scope, label, report, identity)
    if servers:
        files[str(dirs["mcp"])] = dump_json({"mcpServers": servers})

    if project_path is None:
        cli_config = _cli_config(scope, report, identity)
        if cli_config:
            files[str(paths.cursor_cli_config_path())] = dump_json(cli_config)
    elif scope.permissions is not None and not identity:
        report.add_skipped("permissions", f"{label} permissions", "Cursor permissions are global (~/.cursor/cli-config.json)")

    if not identity:
        _report_scope_settings(scope, label, report)

    if identity:
        emit_rules_verbatim(files, report, scope.rules)
    else:
        _convert_rules(scope, project_path, files, report)

    for agent in scope.agents:
        with item_errors(report, "agents", agent.name):
            dest = agent.path if identity else str(dirs["agents"] / f"{agent.name}.md")
            files[dest] = convert_agent(agent, report, identity)
            report.add_converted("agents", agent.path, dest)

    for cmd in scope.commands:
        with item_errors(report, "commands", cmd.name):
            dest = cmd.path if identity else str(dirs["commands"] / f"{cmd.name}.md")
            files[dest] = convert_command(cmd, report, identity)
            report.add_converted("commands", cmd.path, dest)

    emit_skills(files, report, scope.skills, dirs["skills"], identity)


def convert_to_cursor(canonical: CanonicalScanResult, options: Optional[ConvertOptions] = None) -> ConversionOutput:
    identity = canonical.source_format is AgentFormat.CURSOR
    output = ConversionOutput(source_format=canonical.source_format, target_format=AgentFormat.CURSOR)

    for project_path, scope in iter_scopes(canonical):
        _convert_scope(scope, project_path, output.files, output.report, identity)

    if canonical.history is not None:
        output.report.add_skipped(
            "history", f"{canonical.source_format.display_name} history", "History import only targets OpenCode"
        )
    return output
