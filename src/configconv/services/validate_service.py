"""
Validate: canonical model checks, emitted-file checks, and a scan-and-check of a whole format.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from configconv.converters.model_id import is_valid_model_id
from configconv.converters.permissions import ACTIONS
from configconv.core.types import (
    AgentFormat,
    CanonicalScanResult,
    ConversionOutput,
    McpServer,
    ScopeConfig,
    ValidationIssue,
    ValidationResult,
)
from configconv.utils import parse_frontmatter

AGENT_MODES = ("primary", "subagent", "all")
RULE_TYPES = ("always", "file-scoped", "intelligent", "manual", "general")
MCP_TYPES = ("local", "remote")

# Directory names whose markdown files must carry frontmatter
FRONTMATTER_DIRS = ("agents", "agent", "commands", "command")


def _error(result: ValidationResult, path: str, message: str) -> None:
    result.errors.append(ValidationIssue(path=path, message=message))


def _check_model(result: ValidationResult, path: str, model: Any) -> None:
    if model is None:
        return
    if not isinstance(model, str) or not is_valid_model_id(model):
        _error(result, path, f'Invalid model id "{model}" (expected "provider/model")')


def _check_mcp(result: ValidationResult, path: str, server: McpServer) -> None:
    if server.type not in MCP_TYPES:
        _error(result, path, f'Unknown MCP server type "{server.type}"')
    elif server.type == "local" and not server.command:
        _error(result, path, "Local MCP server requires a command")
    elif server.type == "remote" and not server.url:
        _error(result, path, "Remote MCP server requires a url")


def _check_permissions(result: ValidationResult, path: str, permission: Any) -> None:
    if isinstance(permission, str):
        permission = {"*": permission}
    if not isinstance(permission, dict):
        _error(result, path, "Permission must be an action or a map of tool -> action")
        return
    for tool, value in permission.items():
        actions = value.values() if isinstance(value, dict) else [value]
        for action in actions:
            if action not in ACTIONS:
                _error(result, f"{path}.{tool}", f'Invalid permission action "{action}" (expected allow/deny/ask)')


def _check_scope(result: ValidationResult, label: str, scope: ScopeConfig) -> None:
    _check_model(result, f"{label}.model", scope.model)
    _check_model(result, f"{label}.small_model", scope.small_model)

    for name, server in scope.mcp_servers.items():
        _check_mcp(result, f"{label}.mcp.{name}", server)

    if scope.permissions is not None:
        _check_permissions(result, f"{label}.permission", scope.permissions)

    for agent in scope.agents:
        path = agent.path
        _check_model(result, f"{path}: model", agent.model)
        if agent.mode is not None and agent.mode not in AGENT_MODES:
            _error(result, path, f'Invalid agent mode "{agent.mode}" (expected primary/subagent/all)')
        temperature = agent.temperature
        if temperature is not None and (
            isinstance(temperature, bool) or not isinstance(temperature, (int, float)) or not 0 <= temperature <= 2
        ):
            _error(result, path, f"Temperature must be a number between 0 and 2, got {temperature!r}")
        steps = agent.max_steps
        if steps is not None and (isinstance(steps, bool) or not isinstance(steps, int) or steps <= 0):
            _error(result, path, f"Steps must be a positive integer, got {steps!r}")

    for rule in scope.rules:
        if rule.rule_type not in RULE_TYPES:
            _error(result, rule.path, f'Unknown rule type "{rule.rule_type}"')

    for kind, items in (("agent", scope.agents), ("command", scope.commands), ("skill", scope.skills)):
        seen = set()
        for item in items:
            if item.name in seen:
                result.warnings.append(f'{label}: duplicate {kind} name "{item.name}"')
            seen.add(item.name)


def validate_canonical(canonical: CanonicalScanResult) -> ValidationResult:
    result = ValidationResult(warnings=list(canonical.warnings))
    _check_scope(result, "global", canonical.global_config)
    for project in canonical.projects:
        _check_scope(result, project.path, project)
    return result


# =============================================================================
# EMITTED FILES
# =============================================================================


def _check_opencode_config(result: ValidationResult, path: str, config: Dict[str, Any]) -> None:
    for key in ("model", "small_model"):
        if key in config:
            _check_model(result, f"{path}: {key}", config[key])

    mcp = config.get("mcp", {})
    if not isinstance(mcp, dict):
        _error(result, path, "mcp must be an object")
        mcp = {}
    for name, server in mcp.items():
        where = f"{path}: mcp.{name}"
        if not isinstance(server, dict):
            _error(result, where, "MCP server must be an object")
        elif server.get("type") == "local":
            command = server.get("command")
            if not isinstance(command, list) or not command:
                _error(result, where, "Local MCP server requires a non-empty command array")
        elif server.get("type") == "remote":
            if not server.get("url"):
                _error(result, where, "Remote MCP server requires a url")
        else:
            _error(result, where, f'MCP server type must be "local" or "remote", got {server.get("type")!r}')

    if "permission" in config:
        _check_permissions(result, f"{path}: permission", config["permission"])


def validate_output(output: ConversionOutput) -> ValidationResult:
    """Check the files a converter produced before they are written."""
    result = ValidationResult()
    for path, content in output.files.items():
        p = Path(path)
        if p.suffix == ".json":
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                _error(result, path, f"Invalid JSON: {e}")
                continue
            if p.name == "opencode.json" and isinstance(data, dict):
                _check_opencode_config(result, path, data)
        elif p.suffix == ".md" and p.parent.name in FRONTMATTER_DIRS:
            # Only OpenCode requires command frontmatter (agent, subtask)
            if p.parent.name in ("commands", "command") and output.target_format is not AgentFormat.OPENCODE:
                continue
            frontmatter, _ = parse_frontmatter(content)
            if not frontmatter:
                _error(result, path, "Missing frontmatter")
    return result


def validate_format(fmt: AgentFormat, options, model_overrides: Optional[Dict[str, str]] = None) -> ValidationResult:
    """Scan a format and check it parses into a valid canonical model. Raises ScanError."""
    from configconv.canonical import to_canonical
    from configconv.scanners import scan

    scan_result = scan(fmt, options)
    return validate_canonical(to_canonical(scan_result, model_overrides))

