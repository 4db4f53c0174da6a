"""
Scanner for OpenCode configuration.

Global:  $XDG_CONFIG_HOME/opencode/{opencode.json,AGENTS.md,agents,commands,skills}
         (agent/ and command/ are the older singular names, still read)
Project: opencode.json, AGENTS.md, .opencode/{agents,commands,skills}
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from configconv import paths
from configconv.core.types import AgentFormat
from configconv.scanners._common import (
    MarkdownFile,
    ScanOptions,
    SkillInfo,
    read_json_async,
    read_text_async,
    scan_markdown_dir,
    scan_skills_dir,
)
from configconv.utils import settle_all


@dataclass
class OpenCodeScopeScan:
    path: Optional[str] = None  # None for the global scope
    config: Optional[Dict[str, Any]] = None
    config_path: Optional[str] = None
    agents_md: Optional[str] = None
    agents_md_path: Optional[str] = None
    agents: List[MarkdownFile] = field(default_factory=list)
    commands: List[MarkdownFile] = field(default_factory=list)
    skills: List[SkillInfo] = field(default_factory=list)


@dataclass
class OpenCodeScanResult:
    format: AgentFormat = field(default=AgentFormat.OPENCODE, init=False)
    global_scan: Optional[OpenCodeScopeScan] = None
    projects: List[OpenCodeScopeScan] = field(default_factory=list)
    history: Optional[Any] = None
    warnings: List[str] = field(default_factory=list)


def _merge_by_name(primary: List[MarkdownFile], legacy: List[MarkdownFile]) -> List[MarkdownFile]:
    seen = {f.name for f in primary}
    return primary + [f for f in legacy if f.name not in seen]


async def _scan_scope(
    config_path: Path,
    agents_md_path: Path,
    agents_dirs: List[Path],
    commands_dirs: List[Path],
    skills_dir: Path,
    warnings: List[str],
    project: Optional[Path] = None,
) -> OpenCodeScopeScan:
    result = OpenCodeScopeScan(path=str(project) if project else None)

    result.config = await read_json_async(config_path, warnings)
    if result.config is not None:
        result.config_path = str(config_path)

    result.agents_md = await read_text_async(agents_md_path)
    if result.agents_md is not None:
        result.agents_md_path = str(agents_md_path)

    for directory in agents_dirs:
        found = await scan_markdown_dir(directory, warnings=warnings)
        result.agents = _merge_by_name(result.agents, found)
    for directory in commands_dirs:
        found = await scan_markdown_dir(directory, recursive=True, warnings=warnings)
        result.commands = _merge_by_name(result.commands, found)

    result.skills = await scan_skills_dir(skills_dir, warnings=warnings)
    return result


async def _scan_global(warnings: List[str]) -> OpenCodeScopeScan:
    base = paths.oc_config_dir()
    return await _scan_scope(
        paths.oc_global_config_path(),
        paths.oc_global_agents_md_path(),
        [paths.oc_global_agents_dir(), base / "agent"],
        [paths.oc_global_commands_dir(), base / "command"],
        paths.oc_global_skills_dir(),
        warnings,
    )


async def _scan_project(project: Path, warnings: List[str]) -> OpenCodeScopeScan:
    return await _scan_scope(
        paths.oc_project_config_path(project),
        paths.project_agents_md_path(project),
        [paths.oc_project_agents_dir(project), project / ".opencode" / "agent"],
        [paths.oc_project_commands_dir(project), project / ".opencode" / "command"],
        paths.oc_project_skills_dir(project),
        warnings,
        project=project,
    )


async def scan_opencode(options: ScanOptions) -> OpenCodeScanResult:
    result = OpenCodeScanResult()

    if options.scan_global:
        result.global_scan = await _scan_global(result.warnings)

    if options.project is not None:
        result.projects = await settle_all([_scan_project(options.project, result.warnings)], result.warnings)

    if options.include_history:
        result.warnings.append("OpenCode history is not supported as a migration source; skipped")

    return result
