"""
Scanner for Claude Code configuration.

Global:  ~/.claude/settings.json, ~/.claude.json, ~/.claude/CLAUDE.md,
         ~/.claude/{agents,commands,skills}, ~/.agents/skills
Project: .claude/settings.local.json, .mcp.json, CLAUDE.md, AGENTS.md,
         .claude/{agents,commands,skills}, project entry of ~/.claude.json
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from configconv import paths
from configconv.core.errors import ScanError
from configconv.core.types import AgentFormat
from configconv.history.claude_code import scan_claude_history
from configconv.history.types import ClaudeHistoryScan
from configconv.scanners._common import (
    MarkdownFile,
    ScanOptions,
    SkillInfo,
    dedupe_skills,
    read_json_async,
    read_text_async,
    scan_markdown_dir,
    scan_skills_dir,
)
from configconv.utils import logger, settle_all


@dataclass
class ClaudeGlobalScan:
    settings: Optional[Dict[str, Any]] = None
    settings_path: Optional[str] = None
    claude_md: Optional[str] = None
    claude_md_path: Optional[str] = None
    agents: List[MarkdownFile] = field(default_factory=list)
    commands: List[MarkdownFile] = field(default_factory=list)
    skills: List[SkillInfo] = field(default_factory=list)


@dataclass
class ClaudeProjectScan:
    path: str
    settings_local: Optional[Dict[str, Any]] = None
    mcp_json: Optional[Dict[str, Any]] = None
    # projects[<path>] entry of ~/.claude.json
    state_entry: Dict[str, Any] = field(default_factory=dict)
    claude_md: Optional[str] = None
    claude_md_path: Optional[str] = None
    agents_md: Optional[str] = None
    agents_md_path: Optional[str] = None
    agents: List[MarkdownFile] = field(default_factory=list)
    commands: List[MarkdownFile] = field(default_factory=list)
    skills: List[SkillInfo] = field(default_factory=list)


@dataclass
class ClaudeCodeScanResult:
    format: AgentFormat = field(default=AgentFormat.CLAUDE_CODE, init=False)
    user_state: Optional[Dict[str, Any]] = None
    global_scan: Optional[ClaudeGlobalScan] = None
    projects: List[ClaudeProjectScan] = field(default_factory=list)
    history: Optional[ClaudeHistoryScan] = None
    warnings: List[str] = field(default_factory=list)


async def _scan_global(warnings: List[str]) -> ClaudeGlobalScan:
    result = ClaudeGlobalScan()

    settings_path = paths.cc_settings_path()
    result.settings = await read_json_async(settings_path, warnings)
    if result.settings is not None:
        result.settings_path = str(settings_path)

    claude_md_path = paths.cc_global_claude_md_path()
    result.claude_md = await read_text_async(claude_md_path)
    if result.claude_md is not None:
        result.claude_md_path = str(claude_md_path)

    result.agents = await scan_markdown_dir(paths.cc_global_agents_dir(), warnings=warnings)
    result.commands = await scan_markdown_dir(paths.cc_global_commands_dir(), recursive=True, warnings=warnings)

    own_skills = await scan_skills_dir(paths.cc_global_skills_dir(), warnings=warnings)
    shared_skills = await scan_skills_dir(paths.shared_agents_skills_dir(), warnings=warnings)
    result.skills = dedupe_skills(own_skills, shared_skills)
    return result


async def _scan_project(project: Path, user_state: Optional[Dict[str, Any]], warnings: List[str]) -> ClaudeProjectScan:
    result = ClaudeProjectScan(path=str(project))

    result.settings_local = await read_json_async(paths.cc_project_settings_path(project), warnings)
    result.mcp_json = await read_json_async(paths.cc_project_mcp_json_path(project), warnings)

    state_projects = (user_state or {}).get("projects")
    if isinstance(state_projects, dict) and isinstance(state_projects.get(str(project)), dict):
        result.state_entry = state_projects[str(project)]

    claude_md_path = paths.cc_project_claude_md_path(project)
    result.claude_md = await read_text_async(claude_md_path)
    if result.claude_md is not None:
        result.claude_md_path = str(claude_md_path)

    agents_md_path = paths.project_agents_md_path(project)
    result.agents_md = await read_text_async(agents_md_path)
    if result.agents_md is not None:
        result.agents_md_path = str(agents_md_path)

    result.agents = await scan_markdown_dir(paths.cc_project_agents_dir(project), warnings=warnings)
    result.commands = await scan_markdown_dir(
        paths.cc_project_commands_dir(project), recursive=True, warnings=warnings
    )
    result.skills = await scan_skills_dir(paths.cc_project_skills_dir(project), warnings=warnings)
    return result


def _known_projects(user_state: Optional[Dict[str, Any]]) -> List[Path]:
    """Projects listed in ~/.claude.json that still exist on disk."""
    state_projects = (user_state or {}).get("projects")
    if not isinstance(state_projects, dict):
        return []
    return [Path(p) for p in state_projects if Path(p).is_dir()]


async def scan_claude_code(options: ScanOptions) -> ClaudeCodeScanResult:
    result = ClaudeCodeScanResult()
    result.user_state = await read_json_async(paths.cc_user_state_path(), result.warnings)

    if options.scan_global:
        result.global_scan = await _scan_global(result.warnings)

    if options.project is not None:
        project_paths = [options.project]
    else:
        project_paths = _known_projects(result.user_state)
    result.projects = await settle_all(
        (_scan_project(p, result.user_state, result.warnings) for p in project_paths),
        result.warnings,
    )

    if options.include_history:
        try:
            result.history = await asyncio.to_thread(scan_claude_history, options.since)
            result.warnings.extend(result.history.warnings)
        except ScanError as e:
            logger.warning("Claude Code history skipped: %s", e)
            result.warnings.append(f"History skipped: {e}")

    return result
