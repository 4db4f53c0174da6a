"""Tests for diff_service.compare_canonical and migrate_service.run_diff."""

import pytest

from configconv.core.errors import UsageError
from configconv.core.types import (
    AgentDefinition,
    AgentFormat,
    CanonicalScanResult,
    CommandDefinition,
    DiffEntry,
    McpServer,
    ProjectConfig,
    ScopeConfig,
    SkillDefinition,
)
from configconv.scanners import ScanOptions
from configconv.services.diff_service import compare_canonical
from configconv.services.migrate_service import run_diff
from tests.conftest import write_json


def _scope(cls=ScopeConfig, mcp=(), agents=(), commands=(), skills=(), model=None, **kwargs):
    return cls(
        model=model,
        mcp_servers={n: McpServer(name=n, command="x") for n in mcp},
        agents=[AgentDefinition(name=n, path=f"{n}.md") for n in agents],
        commands=[CommandDefinition(name=n, path=f"{n}.md") for n in commands],
        skills=[SkillDefinition(name=n, path=n) for n in skills],
        **kwargs,
    )


def _canonical(fmt, global_config, projects=()):
    return CanonicalScanResult(source_format=fmt, global_config=global_config, projects=list(projects))


def test_run_diff_reports_extra_mcp_server(fake_home):
    write_json(fake_home / ".claude.json", {"mcpServers": {"shared": {"command": "npx", "args": ["s"]}}})
    write_json(fake_home / ".config" / "opencode" / "opencode.json", {
        "mcp": {
            "shared": {"type": "local", "command": ["npx", "s"]},
            "extra-server": {"type": "remote", "url": "https://extra.example.com"},
        }
    })

    summary = run_diff(AgentFormat.CLAUDE_CODE, AgentFormat.OPENCODE, ScanOptions())

    assert summary.only_in_target == [DiffEntry("mcp", "extra-server")]
    assert summary.only_in_source == []
    assert summary.in_both == [DiffEntry("mcp", "shared")]
    assert summary.to_dict()["onlyInTarget"] == [{"category": "mcp", "key": "extra-server"}]


def test_run_diff_same_format_is_usage_error():
    with pytest.raises(UsageError):
        run_diff(AgentFormat.CURSOR, AgentFormat.CURSOR, ScanOptions())


def test_compare_by_category_sorted():
    source = _canonical(AgentFormat.CLAUDE_CODE, _scope(agents=["b", "a", "shared"], commands=["git/commit"]))
    target = _canonical(AgentFormat.OPENCODE, _scope(agents=["shared", "z"], skills=["pdf"]))

    summary = compare_canonical(source, target)

    assert summary.only_in_source == [
        DiffEntry("agents", "a"),
        DiffEntry("agents", "b"),
        DiffEntry("commands", "git/commit"),
    ]
    assert summary.only_in_target == [DiffEntry("agents", "z"), DiffEntry("skills", "pdf")]
    assert summary.in_both == [DiffEntry("agents", "shared")]


def test_compare_models():
    same = compare_canonical(
        _canonical(AgentFormat.CLAUDE_CODE, _scope(model="anthropic/claude-opus-4-6")),
        _canonical(AgentFormat.OPENCODE, _scope(model="anthropic/claude-opus-4-6")),
    )
    assert same.in_both == [DiffEntry("model", "anthropic/claude-opus-4-6")]

    different = compare_canonical(
        _canonical(AgentFormat.CLAUDE_CODE, _scope(model="anthropic/claude-opus-4-6")),
        _canonical(AgentFormat.OPENCODE, _scope(model="openai/gpt-5")),
    )
    assert different.only_in_source == [DiffEntry("model", "anthropic/claude-opus-4-6")]
    assert different.only_in_target == [DiffEntry("model", "openai/gpt-5")]


def test_compare_projects():
    source = _canonical(AgentFormat.CLAUDE_CODE, _scope(), [
        _scope(ProjectConfig, path="/p/both", mcp=["db"]),
        _scope(ProjectConfig, path="/p/only-src"),
    ])
    target = _canonical(AgentFormat.CURSOR, _scope(), [
        _scope(ProjectConfig, path="/p/only-tgt"),
        _scope(ProjectConfig, path="/p/both", mcp=["db", "cache"]),
    ])

    summary = compare_canonical(source, target)

    assert summary.only_in_source == [DiffEntry("project", "/p/only-src")]
    assert summary.only_in_target == [
        DiffEntry("mcp", "cache", "/p/both"),
        DiffEntry("project", "/p/only-tgt"),
    ]
    assert summary.in_both == [DiffEntry("mcp", "db", "/p/both")]


def test_compare_projects_keep_union_order():
    source = _canonical(AgentFormat.CLAUDE_CODE, _scope(), [
        _scope(ProjectConfig, path="/z"),
        _scope(ProjectConfig, path="/a"),
    ])
    target = _canonical(AgentFormat.OPENCODE, _scope(), [
        _scope(ProjectConfig, path="/m"),
        _scope(ProjectConfig, path="/b"),
    ])

    summary = compare_canonical(source, target)

    assert [e.key for e in summary.only_in_source] == ["/z", "/a"]
    assert [e.key for e in summary.only_in_target] == ["/m", "/b"]


def test_compare_is_symmetric():
    a = _canonical(AgentFormat.CLAUDE_CODE, _scope(mcp=["x", "y"], agents=["r"], model="anthropic/claude-opus-4-6"), [
        _scope(ProjectConfig, path="/p/1", commands=["c"]),
        _scope(ProjectConfig, path="/p/2"),
    ])
    b = _canonical(AgentFormat.OPENCODE, _scope(mcp=["y", "z"], skills=["s"]), [
        _scope(ProjectConfig, path="/p/1", commands=["d"]),
        _scope(ProjectConfig, path="/p/3"),
    ])

    ab = compare_canonical(a, b)
    ba = compare_canonical(b, a)
    assert ab.only_in_source == ba.only_in_target
    assert ab.only_in_target == ba.only_in_source
    assert ab.in_both == ba.in_both


def test_compare_empty():
    summary = compare_canonical(_canonical(AgentFormat.CLAUDE_CODE, ScopeConfig()), _canonical(AgentFormat.CURSOR, ScopeConfig()))
    assert summary.to_dict() == {"onlyInSource": [], "onlyInTarget": [], "inBoth": []}
