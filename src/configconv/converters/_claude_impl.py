"""
Claude Code Converter
Converts the canonical model to Claude Code files.

Output structure:
- ~/.claude/settings.json (model, env, permissions, autoUpdatesChannel)
- ~/.claude.json (global mcpServers, merged into the existing state file)
- ~/.claude/CLAUDE.md, agents/*.md, commands/*.md, skills/<name>/SKILL.md, rules/*.md
- <project>/.mcp.json, <project>/.claude/settings.local.json, <project>/CLAUDE.md
- <project>/.claude/{agents,commands,skills,rules}
"""

from pathlib import Path
from typing import Any, Dict, Optional

from configconv import paths
from configconv.converters import mcp as mcp_conv
from configconv.converters._common import (
    combine_rules,
    emit_rules_verbatim,
    emit_skills,
    is_always_rule,
    item_errors,
    iter_scopes,
    model_translation_warnings,
    report_extra,
    scope_label,
)
from configconv.converters.model_id import strip_provider_prefix
from configconv.converters.permissions import CLAUDE_TOOL_NAMES, canonical_to_claude
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

ENV_HINT = "${VAR}"

# Agent frontmatter with no Claude Code equivalent, reported once per agent
UNSUPPORTED_AGENT_FIELDS = ("mode", "temperature", "max_steps")

# OpenCode keeps these raw in extra; their content is already in `tools`
RAW_AGENT_KEYS = ("tools", "permission")


def _mcp_servers(scope: ScopeConfig, label: str, report: ConversionReport, identity: bool) -> Dict[str, Any]:
    servers: Dict[str, Any] = {}
    for name, server in scope.mcp_servers.items():
        with item_errors(report, "mcp", name):
            servers[name] = mcp_conv.to_claude(server, identity=identity)
            report.add_converted("mcp", f"{label}: {name}", f"mcpServers.{name}", f"{server.type} server")
            report.warnings.extend(mcp_conv.secret_warnings(server, ENV_HINT))
            if identity:
                continue
            if server.oauth:
                report.manual_actions.append(
                    f'MCP server "{name}" uses OAuth. Claude Code has no OAuth block in its config; '
                    f"authenticate with /mcp after migrating."
                )
            if not server.enabled:
                report.manual_actions.append(
                    f'MCP server "{name}" is disabled in the source. Disable it in Claude Code with /mcp.'
                )
    return servers


def _settings(
    scope: ScopeConfig,
    label: str,
    report: ConversionReport,
    identity: bool,
) -> Dict[str, Any]:
    settings: Dict[str, Any] = {}
    if identity and "$schema" in scope.extra:
        settings["$schema"] = scope.extra["$schema"]

    if scope.model:
        settings["model"] = strip_provider_prefix(scope.model)
        if not identity:
            report.add_converted("config", f'{label} model: "{scope.model}"', f'model: "{settings["model"]}"')

    if scope.env:
        settings["env"] = dict(scope.env)

    if scope.permissions is not None:
        block = canonical_to_claude(scope.permissions, report, source=f"{label}: ")
        if block or identity:
            settings["permissions"] = block
        if not identity:
            report.add_converted("permissions", f"{label} permissions", "permissions")

    if identity:
        for key, value in scope.extra.items():
            settings.setdefault(key, value)
        return settings

    if scope.auto_update:
        settings["autoUpdatesChannel"] = "latest"
        report.add_converted("config", f"{label} autoupdate", 'autoUpdatesChannel: "latest"')
    if scope.small_model:
        report.add_skipped("config", f'{label} small_model: "{scope.small_model}"', "Claude Code has no small model setting")
    report_extra(report, "config", f"{label} settings", scope.extra, "Claude Code")
    return settings


# =============================================================================
# RULES
# =============================================================================


def _scoped_rule(rule: RulesFile) -> str:
    fm: Dict[str, Any] = {}
    if rule.globs:
        fm["paths"] = [g.strip() for g in rule.globs.split(",") if g.strip()]
    if rule.description:
        fm["description"] = rule.description
    return serialize_frontmatter(fm, extract_body(rule.content))


def _convert_rules(
    scope: ScopeConfig,
    label: str,
    claude_md: Path,
    rules_dir: Path,
    files: Dict[str, str],
    report: ConversionReport,
) -> None:
    always = [r for r in scope.rules if is_always_rule(r)]
    combined = combine_rules(always)
    if combined:
        files[str(claude_md)] = combined
        report.add_converted("rules", f"{len(always)} rules ({label})", str(claude_md))

    for rule in scope.rules:
        if rule.rule_type == "manual" and not rule.always_apply:
            report.add_skipped("rules", rule.path, "Manual rules are only applied on @-mention")

    scoped = [r for r in scope.rules if r.rule_type in ("file-scoped", "intelligent") and not is_always_rule(r)]
    if not scoped:
        return
    report.manual_actions.append(
        f"{len(scoped)} file-scoped/intelligent rules found in {label}. Written to {rules_dir} "
        "with `paths` frontmatter; review them, they may need manual adaptation."
    )
    for rule in scoped:
        with item_errors(report, "rules", rule.name):
            dest = str(rules_dir / f"{sanitize_name(rule.name)}.md")
            files[dest] = _scoped_rule(rule)
            report.add_converted("rules", rule.path, dest, rule.rule_type)


# =============================================================================
# AGENTS / COMMANDS
# =============================================================================


def _claude_tools(tools) -> str:
    return ", ".join(CLAUDE_TOOL_NAMES.get(t, t) for t in tools)


def convert_agent(agent: AgentDefinition, report: ConversionReport, identity: bool) -> str:
    fm: Dict[str, Any] = {"name": agent.name}
    if agent.description is not None:
        fm["description"] = agent.description
    if agent.model:
        fm["model"] = strip_provider_prefix(agent.model)
    if agent.tools:
        fm["tools"] = ", ".join(agent.tools) if identity else _claude_tools(agent.tools)
    if agent.color:
        fm["color"] = agent.color

    if identity:
        for key, value in agent.extra.items():
            fm.setdefault(key, value)
        return serialize_frontmatter(fm, agent.body)

    dropped = [f for f in UNSUPPORTED_AGENT_FIELDS if getattr(agent, f) is not None]
    if dropped:
        report.add_skipped("agents", agent.path, f"Claude Code agents have no {', '.join(dropped)}")
    report_extra(report, "agents", agent.path, agent.extra, "Claude Code", exclude=RAW_AGENT_KEYS)
    return serialize_frontmatter(fm, agent.body)


def convert_command(cmd: CommandDefinition, report: ConversionReport, identity: bool) -> str:
    fm: Dict[str, Any] = {}
    if cmd.description is not None:
        fm["description"] = cmd.description
    if identity:
        for key, value in cmd.extra.items():
            fm.setdefault(key, value)
    else:
        report_extra(report, "commands", cmd.path, cmd.extra, "Claude Code")
    return serialize_frontmatter(fm, cmd.body)


# =============================================================================
# SCOPES
# =============================================================================


def _scope_dirs(project_path: Optional[str]) -> Dict[str, Path]:
    if project_path is None:
        return {
            "settings": paths.cc_settings_path(),
            "mcp": paths.cc_user_state_path(),
            "claude_md": paths.cc_global_claude_md_path(),
            "rules": paths.cc_global_rules_dir(),
            "agents": paths.cc_global_agents_dir(),
            "commands": paths.cc_global_commands_dir(),
            "skills": paths.cc_global_skills_dir(),
        }
    project = Path(project_path)
    return {
        "settings": paths.cc_project_settings_path(project),
        "mcp": paths.cc_project_mcp_json_path(project),
        "claude_md": paths.cc_project_claude_md_path(project),
        "rules": paths.cc_project_rules_dir(project),
        "agents": paths.cc_project_agents_dir(project),
        "commands": paths.cc_project_commands_dir(project),
        "skills": paths.cc_project_skills_dir(project),
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

    settings = _settings(scope, label, report, identity)
    if set(settings) - {"$schema"}:
        files[str(dirs["settings"])] = dump_json(settings)

    servers = _mcp_servers(scope, label, report, identity)
    if servers:
        files[str(dirs["mcp"])] = dump_json({"mcpServers": servers})

    if identity:
        emit_rules_verbatim(files, report, scope.rules)
    else:
        _convert_rules(scope, label, dirs["claude_md"], dirs["rules"], files, report)

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

    ignore = getattr(scope, "ignore_patterns", [])
    if ignore and not identity:
        report.add_skipped("config", f"{label} ignorePatterns", "Set them in Claude Code with /config")


def convert_to_claude_code(canonical: CanonicalScanResult, options: Optional[ConvertOptions] = None) -> ConversionOutput:
    """
    Convert a canonical scan result to Claude Code files.

    Model ids lose their "anthropic/" prefix; Bedrock and Vertex ids keep their native form.
    """
    identity = canonical.source_format is AgentFormat.CLAUDE_CODE
    output = ConversionOutput(source_format=canonical.source_format, target_format=AgentFormat.CLAUDE_CODE)

    if not identity:
        model_translation_warnings(output.report, canonical)

    for project_path, scope in iter_scopes(canonical):
        _convert_scope(scope, project_path, output.files, output.report, identity)

    if canonical.history is not None:
        output.report.add_skipped("history", f"{canonical.source_format.display_name} history", "History import only targets OpenCode")
    return output
