"""Tests for validate_service."""

import json

from configconv.core.types import (
    AgentDefinition,
    AgentFormat,
    CanonicalScanResult,
    CommandDefinition,
    ConversionOutput,
    McpServer,
    ProjectConfig,
    RulesFile,
    ScopeConfig,
)
from configconv.scanners import ScanOptions
from configconv.services.migrate_service import apply_migration
from configconv.services.validate_service import validate_canonical, validate_format, validate_output
from tests.conftest import write, write_json


def _messages(result):
    return [(e.path, e.message) for e in result.errors]


# =============================================================================
# CANONICAL
# =============================================================================


def test_valid_canonical():
    scope = ScopeConfig(
        model="anthropic/claude-opus-4-6",
        mcp_servers={"fs": McpServer(name="fs", command="npx")},
        permissions={"*": "ask", "bash": {"git *": "allow"}},
        agents=[AgentDefinition(name="a", path="a.md", mode="subagent", temperature=0.2, max_steps=10)],
    )
    result = validate_canonical(CanonicalScanResult(source_format=AgentFormat.OPENCODE, global_config=scope))
    assert result.valid
    assert result.to_dict() == {"valid": True, "errors": [], "warnings": []}


def test_invalid_agent_fields():
    scope = ScopeConfig(agents=[
        AgentDefinition(name="bad", path="bad.md", mode="boss", temperature=3, max_steps=0, model="opus"),
        AgentDefinition(name="flag", path="flag.md", temperature=True, max_steps=True),
    ])
    result = validate_canonical(CanonicalScanResult(source_format=AgentFormat.OPENCODE, global_config=scope))

    messages = [m for _, m in _messages(result)]
    assert not result.valid
    assert any('Invalid agent mode "boss"' in m for m in messages)
    assert sum("Temperature must be" in m for m in messages) == 2
    assert sum("Steps must be" in m for m in messages) == 2
    assert any('Invalid model id "opus"' in m for m in messages)


def test_invalid_mcp_and_permissions():
    scope = ScopeConfig(
        small_model="gpt",
        mcp_servers={
            "local": McpServer(name="local", type="local"),
            "remote": McpServer(name="remote", type="remote"),
            "odd": McpServer(name="odd", type="stdio", command="x"),
        },
        permissions={"bash": "maybe", "edit": {"src/**": "never"}},
    )
    result = validate_canonical(CanonicalScanResult(source_format=AgentFormat.CLAUDE_CODE, global_config=scope))

    assert _messages(result) == [
        ("global.small_model", 'Invalid model id "gpt" (expected "provider/model")'),
        ("global.mcp.local", "Local MCP server requires a command"),
        ("global.mcp.remote", "Remote MCP server requires a url"),
        ("global.mcp.odd", 'Unknown MCP server type "stdio"'),
        ("global.permission.bash", 'Invalid permission action "maybe" (expected allow/deny/ask)'),
        ("global.permission.edit", 'Invalid permission action "never" (expected allow/deny/ask)'),
    ]


def test_project_rules_and_duplicates():
    project = ProjectConfig(
        path="/p",
        rules=[RulesFile(path="/p/x.mdc", name="x", content="", rule_type="sometimes")],
        commands=[CommandDefinition(name="c", path="1.md"), CommandDefinition(name="c", path="2.md")],
    )
    canonical = CanonicalScanResult(source_format=AgentFormat.CURSOR, projects=[project], warnings=["scan warning"])
    result = validate_canonical(canonical)

    assert _messages(result) == [("/p/x.mdc", 'Unknown rule type "sometimes"')]
    assert result.warnings == ["scan warning", '/p: duplicate command name "c"']


# =============================================================================
# OUTPUT FILES
# =============================================================================


def _output(target, files):
    return ConversionOutput(source_format=AgentFormat.CLAUDE_CODE, target_format=target, files=files)


def test_validate_output_opencode_config():
    config = {
        "model": "opus",
        "mcp": {
            "ok": {"type": "local", "command": ["npx", "fs"]},
            "empty": {"type": "local", "command": []},
            "nourl": {"type": "remote"},
            "weird": {"type": "stdio"},
            "notobj": "x",
        },
        "permission": {"bash": "perhaps"},
    }
    result = validate_output(_output(AgentFormat.OPENCODE, {"/h/.config/opencode/opencode.json": json.dumps(config)}))

    messages = [m for _, m in _messages(result)]
    assert len(messages) == 6
    assert any("non-empty command array" in m for m in messages)
    assert any("requires a url" in m for m in messages)
    assert any("'stdio'" in m for m in messages)
    assert any("must be an object" in m for m in messages)


def test_validate_output_invalid_json_and_frontmatter():
    files = {
        "/h/.claude.json": "{broken",
        "/h/.config/opencode/agents/a.md": "no frontmatter here\n",
        "/h/.config/opencode/commands/c.md": "---\ndescription: C\nagent: build\n---\n\nbody\n",
        "/h/.config/opencode/commands/d.md": "plain\n",
        "/h/.config/opencode/AGENTS.md": "rules\n",
    }
    result = validate_output(_output(AgentFormat.OPENCODE, files))

    assert [p for p, _ in _messages(result)] == [
        "/h/.claude.json",
        "/h/.config/opencode/agents/a.md",
        "/h/.config/opencode/commands/d.md",
    ]


def test_validate_output_cursor_commands_need_no_frontmatter():
    result = validate_output(_output(AgentFormat.CURSOR, {"/p/.cursor/commands/fix.md": "Fix it.\n"}))
    assert result.valid


# =============================================================================
# FORMAT
# =============================================================================


def test_validate_format_clean(fake_home):
    base = fake_home / ".config" / "opencode"
    write_json(base / "opencode.json", {"model": "anthropic/claude-opus-4-6"})
    write(base / "agents" / "a.md", "---\ndescription: A\nmode: subagent\n---\nBody\n")

    assert validate_format(AgentFormat.OPENCODE, ScanOptions()).valid


def test_validate_format_finds_errors(fake_home):
    base = fake_home / ".config" / "opencode"
    write(base / "agents" / "a.md", "---\nmode: sometimes\ntemperature: 9\n---\nBody\n")
    write(base / "opencode.json", "{ nope")

    result = validate_format(AgentFormat.OPENCODE, ScanOptions())
    assert len(result.errors) == 2
    assert any("Malformed JSON" in w for w in result.warnings)


# =============================================================================
# MIGRATION
# =============================================================================


def test_plan_reports_invalid_output(tmp_path):
    bad = tmp_path / "opencode" / "agents" / "a.md"
    output = _output(AgentFormat.OPENCODE, {str(bad): "no frontmatter here\n"})

    result = apply_migration(output, dry_run=True, backup=False)

    assert not result.validation.valid
    assert result.output.report.ok
    assert result.ok is False
    data = result.to_dict()
    assert data["ok"] is False
    assert data["validation"]["errors"] == [{"path": str(bad), "message": "Missing frontmatter"}]
    assert not bad.exists()
