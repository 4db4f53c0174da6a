"""Tests for pure translation helpers: heuristics, model ids, permissions."""

import pytest

from configconv.converters.heuristics import infer_mode, infer_temperature, tools_to_permissions
from configconv.converters.model_id import (
    canonical_model,
    detect_provider,
    is_valid_model_id,
    strip_provider_prefix,
    suggest_small_model,
    translate_model_id,
)
from configconv.converters.permissions import (
    canonical_to_claude,
    canonical_to_cursor,
    claude_to_canonical,
    cursor_to_canonical,
    opencode_to_canonical,
    parse_tool_pattern,
)
from configconv.core.types import ConversionReport


# =============================================================================
# HEURISTICS
# =============================================================================


@pytest.mark.parametrize(
    "name, description, expected",
    [
        ("code-reviewer", None, "subagent"),
        ("builder", None, "primary"),
        ("security-auditor", "Audits dependencies", "subagent"),
        ("orchestrator", "Coordinates agents", "primary"),
        ("misc", None, "primary"),
        # primary keywords win over subagent ones
        ("test-builder", None, "primary"),
    ],
)
def test_infer_mode(name, description, expected):
    assert infer_mode(name, description, []) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("security-auditor", 0.1),
        ("refactor-helper", 0.3),
        ("docs-writer", 0.5),
        ("misc", 0.3),
    ],
)
def test_infer_temperature(name, expected):
    assert infer_temperature(name, None, []) == expected


def test_heuristics_are_deterministic():
    assert infer_mode("reviewer", "checks code", ["Read"]) == infer_mode("reviewer", "checks code", ["Read"])


def test_tools_to_permissions():
    permission, skipped = tools_to_permissions(["Read", "Bash", "Grep", "mcp__github"], allow_unknown=False)
    assert permission == {"read": "allow", "bash": "ask", "grep": "allow"}
    assert skipped == ["mcp__github"]


def test_tools_to_permissions_keeps_unknown():
    permission, skipped = tools_to_permissions(["bash", "custom_tool"])
    assert permission == {"bash": "ask", "custom_tool": "allow"}
    assert skipped == []


# =============================================================================
# MODEL IDS
# =============================================================================


@pytest.mark.parametrize(
    "model, expected",
    [
        ("opus", "anthropic/claude-opus-4-6"),
        ("sonnet", "anthropic/claude-sonnet-4-5"),
        ("claude-opus-4-6", "anthropic/claude-opus-4-6"),
        ("claude-new-model-9", "anthropic/claude-new-model-9"),
        ("anthropic.claude-opus-4-6-v1:0", "amazon-bedrock/anthropic.claude-opus-4-6-v1:0"),
        ("openai/gpt-5", "openai/gpt-5"),
    ],
)
def test_translate_model_id(model, expected):
    assert translate_model_id(model) == expected


def test_translate_model_id_overrides_win():
    assert translate_model_id("opus", overrides={"opus": "my-proxy/opus"}) == "my-proxy/opus"


def test_translate_model_id_provider_fallback():
    assert translate_model_id("custom-model", provider="google-vertex") == "google-vertex/custom-model"


def test_canonical_model_inherit_is_none():
    assert canonical_model("inherit") is None
    assert canonical_model("") is None
    assert canonical_model(None) is None
    assert canonical_model(42) is None


def test_detect_provider():
    assert detect_provider({"CLAUDE_CODE_USE_BEDROCK": "1"}) == "amazon-bedrock"
    assert detect_provider({"CLAUDE_CODE_USE_VERTEX": "1"}) == "google-vertex"
    assert detect_provider({}, "us.anthropic.claude-sonnet-4-5") == "amazon-bedrock"
    assert detect_provider() == "anthropic"


def test_small_model_and_prefix_helpers():
    assert suggest_small_model("anthropic/claude-opus-4-6") == "anthropic/claude-sonnet-4-5"
    assert suggest_small_model("amazon-bedrock/x").startswith("amazon-bedrock/")
    assert strip_provider_prefix("anthropic/claude-opus-4-6") == "claude-opus-4-6"
    assert strip_provider_prefix("openai/gpt-5") == "openai/gpt-5"
    assert is_valid_model_id("anthropic/claude-opus-4-6")
    assert not is_valid_model_id("opus")
    assert not is_valid_model_id("/opus")


# =============================================================================
# PERMISSIONS
# =============================================================================


def test_parse_tool_pattern():
    assert parse_tool_pattern("Bash(git *)") == ("Bash", "git *")
    assert parse_tool_pattern("Read") == ("Read", "*")
    assert parse_tool_pattern("not a tool!") is None


def test_claude_to_canonical():
    block = {"allow": ["Bash(git *)", "Read"], "deny": ["Read(.env)"], "ask": ["WebFetch"]}
    assert claude_to_canonical(block) == {
        "*": "ask",
        "bash": {"git *": "allow"},
        "read": {"*": "allow", ".env": "deny"},
        "webfetch": "ask",
    }


def test_claude_to_canonical_bypass_and_allowed_tools():
    permission = claude_to_canonical({"defaultMode": "bypassPermissions"}, ["Edit"])
    assert permission == {"*": "allow", "edit": "allow"}


def test_claude_to_canonical_bad_pattern_warns():
    warnings = []
    permission = claude_to_canonical({"allow": ["???"]}, None, warnings)
    assert permission == {"*": "ask"}
    assert len(warnings) == 1


def test_claude_to_canonical_none():
    assert claude_to_canonical(None) is None


def test_canonical_to_claude():
    report = ConversionReport()
    block = canonical_to_claude(
        {"*": "allow", "bash": {"git *": "allow", "rm *": "deny"}, "edit": "ask"},
        report,
    )
    assert block == {
        "defaultMode": "bypassPermissions",
        "allow": ["Bash(git *)"],
        "deny": ["Bash(rm *)"],
        "ask": ["Edit"],
    }
    assert report.skipped == []


def test_canonical_to_claude_deny_all_is_skipped():
    report = ConversionReport()
    assert canonical_to_claude({"*": "deny"}, report) == {}
    assert len(report.skipped) == 1


def test_cursor_permissions_round_trip():
    canonical = cursor_to_canonical({"allow": ["Shell(git *)", "Read"], "deny": ["Write"]})
    assert canonical == {"*": "ask", "bash": {"git *": "allow"}, "read": "allow", "write": "deny"}
    report = ConversionReport()
    assert canonical_to_cursor(canonical, report) == {"allow": ["Shell(git *)", "Read"], "deny": ["Write"]}


def test_canonical_to_cursor_drops_ask_and_unknown_tools():
    report = ConversionReport()
    lists = canonical_to_cursor({"bash": "ask", "webfetch": "allow", "edit": "allow"}, report)
    assert lists == {"allow": ["Edit"]}
    assert len(report.skipped) == 2


def test_opencode_to_canonical():
    assert opencode_to_canonical("allow") == {"*": "allow"}
    warnings = []
    permission = opencode_to_canonical({"bash": {"*": "ask"}, "edit": "deny", "bad": 3}, warnings)
    assert permission == {"bash": "ask", "edit": "deny"}
    assert len(warnings) == 1
