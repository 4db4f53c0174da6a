"""
Scanner for Cursor configuration.

Global:  ~/.cursor/mcp.json, ~/.cursor/cli-config.json, ~/.cursor/{agents,commands,skills}
Project: .cursor/mcp.json, .cursor/rules/*.mdc|*.md, .cursor/{agents,commands,skills},
         .cursorrules (legacy), AGENTS.md
History: Cursor's state.vscdb SQLite databases
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from configconv import paths
from configconv.core.errors import ScanError
from configconv.core.types import AgentFormat
from configconv.history.cursor import scan_cursor_history
from configconv.history.types import CursorHistoryScan
from configconv.scanners._common import (
    MarkdownFile,
    ScanOptions,
    SkillInfo,
    read_json_async,
    read_text_async,
    scan_markdown_dir,
    scan_skills_dir,
)
from configconv.utils import logger, settle_all

# Built-in skills Cursor ships itself
INTERNAL_SKILL_DIRS = ("skills-cursor",)


@dataclass
class CursorGlobalScan:
    mcp_json: Optional[Dict[str, Any]] = None
    cli_config: Optional[Dict[str, Any]] = None
    agents: List[MarkdownFile] = field(default_factory=list)
    commands: List[MarkdownFile] = field(default_factory=list)
    skills: List[SkillInfo] = field(default_factory=list)


@dataclass
class CursorProjectScan:
    path: str
    mcp_json: Optional[Dict[str, Any]] = None
    rules: List[MarkdownFile] = field(default_factory=list)
    cursor_rules: Optional[str] = None
    cursor_rules_path: Optional[str] = None
    agents_md: Optional[str] = None
    agents_md_path: Optional[str] = None
    agents: List[MarkdownFile] = field(default_factory=list)
    commands: List[MarkdownFile] = field(default_factory=list)
    skills: List[SkillInfo] = field(default_factory=list)


@dataclass
class CursorScanResult:
    format: AgentFormat = field(default=AgentFormat.CURSOR, init=False)
    global_scan: Optional[CursorGlobalScan] = None
    projects: List[CursorProjectScan] = field(default_factory=list)
    history: Optional[CursorHistoryScan] = None
    warnings: List[str] = field(default_factory=list)


async def _scan_global(warnings: List[str]) -> CursorGlobalScan:
    result = CursorGlobalScan()
    result.mcp_json = await read_json_async(paths.cursor_global_mcp_json_path(), warnings)
    result.cli_config = await read_json_async(paths.cursor_cli_config_path(), warnings)
    result.agents = await scan_markdown_dir(paths.cursor_global_agents_dir(), recursive=True, warnings=warnings)
    result.commands = await scan_markdown_dir(paths.cursor_global_commands_dir(), recursive=True, warnings=warnings)
    result.skills = await scan_skills_dir(paths.cursor_global_skills_dir(), skip=INTERNAL_SKILL_DIRS, warnings=warnings)
    return result


async def _scan_project(project: Path, warnings: List[str]) -> CursorProjectScan:
    result = CursorProjectScan(path=str(project))
    result.mcp_json = await read_json_async(paths.cursor_project_mcp_json_path(project), warnings)
    result.rules = await scan_markdown_dir(
        paths.cursor_project_rules_dir(project), recursive=True, suffixes=(".mdc", ".md"), warnings=warnings
    )

    legacy_path = paths.cursor_legacy_rules_path(project)
    result.cursor_rules = await read_text_async(legacy_path)
    if result.cursor_rules is not None:
        result.cursor_rules_path = str(legacy_path)

    agents_md_path = paths.project_agents_md_path(project)
    result.agents_md = await read_text_async(agents_md_path)
    if result.agents_md is not None:
        result.agents_md_path = str(agents_md_path)

    result.agents = await scan_markdown_dir(paths.cursor_project_agents_dir(project), recursive=True, warnings=warnings)
    result.commands = await scan_markdown_dir(
        paths.cursor_project_commands_dir(project), recursive=True, warnings=warnings
    )
    result.skills = await scan_skills_dir(
        paths.cursor_project_skills_dir(project), skip=INTERNAL_SKILL_DIRS, warnings=warnings
    )
    return result


async def scan_cursor(options: ScanOptions) -> CursorScanResult:
    result = CursorScanResult()

    if options.scan_global:
        result.global_scan = await _scan_global(result.warnings)

    if options.project is not None:
        result.projects = await settle_all([_scan_project(options.project, result.warnings)], result.warnings)

    if options.include_history:
        try:
            result.history = await asyncio.to_thread(scan_cursor_history, options.since)
            result.warnings.extend(result.history.warnings)
        except ScanError as e:
            logger.warning("Cursor history skipped: %s", e)
            result.warnings.append(f"History skipped: {e}")

    return result
