"""
OpenCode Converter
Converts the canonical model to OpenCode files.

Output structure:
- ~/.config/opencode/opencode.json ($schema, model, small_model, provider, mcp, permission, autoupdate)
- ~/.config/opencode/AGENTS.md, agents/*.md, commands/*.md, skills/<name>/SKILL.md
- <project>/opencode.json, <project>/AGENTS.md, <project>/.opencode/{agents,commands,skills}
- Chat history is attached to the output and written by the migrate service

Reference: https://opencode.ai/docs/config/
           https://opencode.ai/docs/agents/
           https://opencode.ai/docs/commands/
"""

from pathlib import Path
from typing import Any, Dict, Optional

from configconv import paths
from configconv.converters import mcp as mcp_conv
from configconv.converters._common import (
    combine_rules,
    emit_rules_verbatim,
    emit_skills,
    heuristic_warning,
    model_translation_warnings,
    is_always_rule,
    item_errors,
    iter_scopes,
    report_extra,
    scope_label,
    tools_warning,
)
from configconv.converters.heuristics import infer_mode, infer_temperature, tools_to_permissions
from configconv.converters.hooks import EVENT_HANDLERS, PLUGIN_FILENAME, generate_plugin, hook_commands
from configconv.converters.model_id import alias_source, detect_provider, suggest_small_model, translate_model_id
from configconv.core.converter import ConvertOptions
from configconv.core.types import (
    AgentDefinition,
    AgentFormat,
    CanonicalScanResult,
    CommandDefinition,
    ConversionOutput,
    ConversionReport,
    ScopeConfig,
)
from configconv.utils import dump_json, serialize_frontmatter

SCHEMA_URL = "https://opencode.ai/config.json"

AGENT_MODES = ("primary", "subagent", "all")

# Default step limits when the source agent has none
SUBAGENT_STEPS = 25
PRIMARY_STEPS = 50

# Agent frontmatter kept raw in extra by the OpenCode canonicalizer
RAW_AGENT_KEYS = ("tools", "permission")

# Env prefixes that feed the provider block instead of being reported
PROVIDER_ENV_PREFIXES = ("CLAUDE_CODE_USE_", "ANTHROPIC_", "AWS_", "GOOGLE_")


# =============================================================================
# CONFIG
# =============================================================================


def build_provider_config(env: Dict[str, str], report: ConversionReport) -> Dict[str, Any]:
    """Claude Code env flags -> OpenCode provider block. Secrets become {env:VAR} references."""
    providers: Dict[str, Any] = {}

    if env.get("CLAUDE_CODE_USE_BEDROCK") == "1":
        providers["amazon-bedrock"] = {"options": {}}
        report.add_converted("config", "CLAUDE_CODE_USE_BEDROCK=1", 'provider: "amazon-bedrock"')
        if env.get("AWS_ACCESS_KEY_ID") or env.get("AWS_SECRET_ACCESS_KEY"):
            report.manual_actions.append(
                "AWS credentials detected in Claude Code env. OpenCode reads AWS credentials "
                "from the environment or ~/.aws/credentials. Do NOT put credentials in opencode.json."
            )

    if env.get("CLAUDE_CODE_USE_VERTEX") == "1":
        providers["google-vertex"] = {"options": {}}
        report.add_converted("config", "CLAUDE_CODE_USE_VERTEX=1", 'provider: "google-vertex"')

    if env.get("ANTHROPIC_API_KEY"):
        providers["anthropic"] = {"options": {"apiKey": "{env:ANTHROPIC_API_KEY}"}}
        report.warnings.append(
            "Anthropic API key detected. Using {env:ANTHROPIC_API_KEY} instead of copying the secret. "
            "Ensure ANTHROPIC_API_KEY is set in your environment."
        )

    return providers


def _mcp_block(scope: ScopeConfig, label: str, report: ConversionReport, identity: bool) -> Dict[str, Any]:
    disabled = set(getattr(scope, "disabled_mcp_servers", []))
    block: Dict[str, Any] = {}
    for name, server in scope.mcp_servers.items():
        with item_errors(report, "mcp", name):
            block[name] = mcp_conv.to_opencode(server, disabled=name in disabled, identity=identity)
            report.add_converted("mcp", f"{label}: {name}", f"mcp.{name}", f"{server.type} server")
            report.warnings.extend(mcp_conv.secret_warnings(server, "{env:VAR}"))
    return block


def _identity_config(scope: ScopeConfig, label: str, report: ConversionReport) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if "$schema" in scope.extra:
        config["$schema"] = scope.extra["$schema"]
    if scope.model:
        config["model"] = scope.model
    if scope.small_model:
        config["small_model"] = scope.small_model
    mcp = _mcp_block(scope, label, report, identity=True)
    if mcp:
        config["mcp"] = mcp
    if scope.permissions is not None:
        config["permission"] = scope.permissions
    if scope.auto_update is not None:
        config["autoupdate"] = scope.auto_update
    for key, value in scope.extra.items():
        config.setdefault(key, value)
    return config


def _cross_config(
    scope: ScopeConfig,
    project_path: Optional[str],
    report: ConversionReport,
    options: ConvertOptions,
    provider: str,
) -> Dict[str, Any]:
    label = scope_label(project_path)
    config: Dict[str, Any] = {"$schema": SCHEMA_URL}

    model = scope.model
    if model:
        config["model"] = model
        report.add_converted("config", f"{label} model", f'model: "{model}"')
    elif project_path is None and options.default_model:
        model = translate_model_id(options.default_model, provider, options.model_overrides)
        config["model"] = model
        via = alias_source(options.default_model, options.model_overrides)
        if via:
            report.warnings.append(f"default_model {options.default_model!r} translated to {model!r} via {via}")

    if scope.small_model:
        config["small_model"] = scope.small_model
    elif project_path is None and options.default_small_model:
        config["small_model"] = translate_model_id(options.default_small_model, provider, options.model_overrides)
    elif project_path is None and model:
        config["small_model"] = suggest_small_model(model)
        report.warnings.append(f'small_model not set, suggested "{config["small_model"]}"')

    if scope.env:
        providers = build_provider_config(scope.env, report)
        if providers:
            config["provider"] = providers
        unmapped = [k for k in scope.env if not k.startswith(PROVIDER_ENV_PREFIXES)]
        if unmapped:
            report.manual_actions.append(
                f"Environment variables with no OpenCode equivalent ({label}): {', '.join(unmapped)}. "
                "Set them in your shell profile or use {env:VAR} interpolation in opencode.json."
            )

    mcp = _mcp_block(scope, label, report, identity=False)
    if mcp:
        config["mcp"] = mcp

    if scope.permissions is not None:
        config["permission"] = scope.permissions
        report.add_converted("permissions", f"{label} permissions", "permission")

    if scope.auto_update is not None:
        config["autoupdate"] = scope.auto_update
        report.add_converted("config", f"{label} auto-update", f"autoupdate: {str(scope.auto_update).lower()}")

    report_extra(report, "config", f"{label} settings", scope.extra, "OpenCode", exclude=("hooks", "autoUpdatesChannel"))

    ignore = getattr(scope, "ignore_patterns", [])
    if ignore:
        report.manual_actions.append(
            f"ignorePatterns in {label} ({', '.join(ignore)}) have no OpenCode equivalent; "
            "add them to .gitignore or watcher.ignore."
        )
    return config


# =============================================================================
# AGENTS / COMMANDS
# =============================================================================


def _agent_identity(agent: AgentDefinition) -> str:
    fm: Dict[str, Any] = {}
    if agent.description is not None:
        fm["description"] = agent.description
    if agent.mode is not None:
        fm["mode"] = agent.mode
    if agent.model:
        fm["model"] = agent.model
    if agent.temperature is not None:
        fm["temperature"] = agent.temperature
    if agent.max_steps is not None:
        fm["steps"] = agent.max_steps
    if agent.color:
        fm["color"] = agent.color
    for key, value in agent.extra.items():
        fm.setdefault(key, value)
    return serialize_frontmatter(fm, agent.body)


def convert_agent(agent: AgentDefinition, report: ConversionReport, options: ConvertOptions, provider: str) -> str:
    """Canonical agent -> OpenCode agent markdown (heuristics fill mode/temperature)."""
    fm: Dict[str, Any] = {"description": agent.description or agent.name}

    if agent.mode in AGENT_MODES:
        mode = agent.mode
    else:
        mode = infer_mode(agent.name, agent.description, agent.tools)
        heuristic_warning(report, "Agent", agent.name, "mode", mode)
    fm["mode"] = mode

    if agent.model:
        fm["model"] = translate_model_id(agent.model, provider, options.model_overrides)

    if agent.temperature is not None:
        fm["temperature"] = agent.temperature
    else:
        fm["temperature"] = infer_temperature(agent.name, agent.description, agent.tools)
        heuristic_warning(report, "Agent", agent.name, "temperature", fm["temperature"])

    if agent.max_steps is not None:
        fm["steps"] = agent.max_steps
    else:
        fm["steps"] = SUBAGENT_STEPS if mode == "subagent" else PRIMARY_STEPS

    if agent.color:
        fm["color"] = agent.color

    if agent.tools:
        permission, _ = tools_to_permissions(agent.tools, allow_unknown=True)
        fm["permission"] = permission
        tools_warning(report, agent.name, agent.tools, permission)

    report_extra(report, "agents", agent.path, agent.extra, "OpenCode", exclude=RAW_AGENT_KEYS)
    return serialize_frontmatter(fm, agent.body)


def _command_identity(cmd: CommandDefinition) -> str:
    fm: Dict[str, Any] = {}
    if cmd.description is not None:
        fm["description"] = cmd.description
    for key, value in cmd.extra.items():
        fm.setdefault(key, value)
    return serialize_frontmatter(fm, cmd.body)


def convert_command(cmd: CommandDefinition, report: ConversionReport) -> str:
    fm = {"description": cmd.description or cmd.name, "agent": "build", "subtask": False}
    report_extra(report, "commands", cmd.path, cmd.extra, "OpenCode")
    return serialize_frontmatter(fm, cmd.body)


# =============================================================================
# HOOKS
# =============================================================================


def _convert_hooks(scope: ScopeConfig, label: str, plugins_dir: Path, files: Dict[str, str], report: ConversionReport):
    """Claude Code hooks -> plugins/cc-hooks.ts stub. Events with no equivalent are reported as skipped."""
    hooks = scope.extra.get("hooks")
    if not hooks:
        return
    events = ", ".join(sorted(hooks)) if isinstance(hooks, dict) else "hooks"
    commands = hook_commands(hooks)
    if not commands:
        report.add_skipped("hooks", f"{label} hooks", "No command hooks to convert")
    else:
        dest = plugins_dir / PLUGIN_FILENAME
        files[str(dest)] = generate_plugin(commands)
        counts: Dict[str, int] = {}
        for hook in commands:
            counts[hook.event] = counts.get(hook.event, 0) + 1
        for event, count in counts.items():
            source = f"{label} hooks.{event} ({count} entries)"
            if event in EVENT_HANDLERS:
                report.add_converted("hooks", source, str(dest), "Generated plugin stub, review and customize")
            else:
                report.add_skipped("hooks", source, f"No OpenCode plugin equivalent; kept as a comment in {dest}")
        report.warnings.append(f"Hooks ({label}) were converted to a plugin stub at {dest}; review and customize it")
    report.manual_actions.append(
        f"Hooks detected ({label}: {events}). "
        "OpenCode uses a plugin system instead; check the generated plugin in plugins/ "
        "and port anything it could not express."
    )


# =============================================================================
# SCOPES
# =============================================================================


def _scope_dirs(project_path: Optional[str]) -> Dict[str, Path]:
    if project_path is None:
        return {
            "config": paths.oc_global_config_path(),
            "agents_md": paths.oc_global_agents_md_path(),
            "agents": paths.oc_global_agents_dir(),
            "commands": paths.oc_global_commands_dir(),
            "skills": paths.oc_global_skills_dir(),
            "plugins": paths.oc_global_plugins_dir(),
        }
    project = Path(project_path)
    return {
        "config": paths.oc_project_config_path(project),
        "agents_md": paths.project_agents_md_path(project),
        "agents": paths.oc_project_agents_dir(project),
        "commands": paths.oc_project_commands_dir(project),
        "skills": paths.oc_project_skills_dir(project),
        "plugins": paths.oc_project_plugins_dir(project),
    }


def _convert_rules(scope: ScopeConfig, label: str, agents_md: Path, files: Dict[str, str], report: ConversionReport):
    always = [r for r in scope.rules if is_always_rule(r)]
    combined = combine_rules(always)
    if combined:
        files[str(agents_md)] = combined
        report.add_converted("rules", f"{len(always)} rules ({label})", str(agents_md))

    scoped = [r for r in scope.rules if r.rule_type in ("file-scoped", "intelligent")]
    if scoped:
        report.manual_actions.append(
            f"{len(scoped)} file-scoped/intelligent rules found in {label}. "
            "OpenCode does not support file-scoped rules; merge their content into AGENTS.md "
            "or use AGENTS.md files in subdirectories."
        )
    for rule in scope.rules:
        if rule.rule_type == "manual" and not rule.always_apply:
            report.add_skipped("rules", rule.path, "Manual rules are only applied on @-mention")


def _convert_scope(
    scope: ScopeConfig,
    project_path: Optional[str],
    files: Dict[str, str],
    report: ConversionReport,
    options: ConvertOptions,
    identity: bool,
    provider: str,
) -> None:
    label = scope_label(project_path)
    dirs = _scope_dirs(project_path)

    # Config
    if identity:
        config = _identity_config(scope, label, report)
    else:
        config = _cross_config(scope, project_path, report, options, provider)
    if set(config) - {"$schema"}:
        files[str(dirs["config"])] = dump_json(config)

    # Rules
    if identity:
        emit_rules_verbatim(files, report, scope.rules)
    else:
        _convert_rules(scope, label, dirs["agents_md"], files, report)

    # Agents
    for agent in scope.agents:
        with item_errors(report, "agents", agent.name):
            if identity:
                dest, content = agent.path, _agent_identity(agent)
            else:
                dest = str(dirs["agents"] / f"{agent.name}.md")
                content = convert_agent(agent, report, options, provider)
            files[dest] = content
            report.add_converted("agents", agent.path, dest)

    # Commands
    for cmd in scope.commands:
        with item_errors(report, "commands", cmd.name):
            if identity:
                dest, content = cmd.path, _command_identity(cmd)
            else:
                dest = str(dirs["commands"] / f"{cmd.name}.md")
                content = convert_command(cmd, report)
            files[dest] = content
            report.add_converted("commands", cmd.path, dest)

    # Skills
    emit_skills(files, report, scope.skills, dirs["skills"], identity)

    # Hooks
    if not identity:
        _convert_hooks(scope, label, dirs["plugins"], files, report)


# =============================================================================
# HISTORY
# =============================================================================


def _convert_history(canonical: CanonicalScanResult, output: ConversionOutput) -> None:
    if canonical.history is None:
        return
    # Lazy import: history pulls in sqlite3
    from configconv.history import convert_cursor_history, convert_history

    if canonical.source_format is AgentFormat.CLAUDE_CODE:
        conversion = convert_history(canonical.history)
    elif canonical.source_format is AgentFormat.CURSOR:
        conversion = convert_cursor_history(canonical.history)
    else:
        output.report.add_skipped("history", "OpenCode sessions", "Already in OpenCode storage")
        return
    output.history = conversion
    output.report.merge(conversion.report)


# =============================================================================
# MAIN CONVERSION
# =============================================================================


def convert_to_opencode(canonical: CanonicalScanResult, options: Optional[ConvertOptions] = None) -> ConversionOutput:
    """
    Convert a canonical scan result to OpenCode files.

    Identity conversion (OpenCode -> OpenCode) writes back exactly what was read,
    including unknown fields; cross-format conversion applies heuristics and defaults.
    """
    options = options or ConvertOptions()
    identity = canonical.source_format is AgentFormat.OPENCODE
    output = ConversionOutput(source_format=canonical.source_format, target_format=AgentFormat.OPENCODE)
    provider = detect_provider(canonical.global_config.env)

    if not identity:
        model_translation_warnings(output.report, canonical)

    for project_path, scope in iter_scopes(canonical):
        _convert_scope(scope, project_path, output.files, output.report, options, identity, provider)

    _convert_history(canonical, output)
    return output
