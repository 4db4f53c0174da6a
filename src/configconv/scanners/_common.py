"""
Shared building blocks for the format scanners.

Moi ham doc file chay trong asyncio.to_thread; cac file anh em trong cung
mot thu muc duoc doc song song qua settle_all.
"""

import asyncio
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from configconv.utils import (
    glob_markdown,
    list_dir,
    parse_frontmatter,
    read_json,
    read_text,
    settle_all,
)


@dataclass
class ScanOptions:
    global_scope: bool = True
    project: Optional[Path] = None
    include_history: bool = False
    since: Optional[datetime] = None

    @property
    def scan_global(self) -> bool:
        # Khong co project -> luon scan global
        return self.global_scope or self.project is None


@dataclass
class MarkdownFile:
    """One markdown file as found on disk (agent, command, rule)."""
    path: str
    name: str
    content: str
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    body: str = ""


@dataclass
class SkillInfo:
    """One skill directory (<skills>/<name>/SKILL.md)."""
    path: str
    name: str
    description: Optional[str] = None
    content: Optional[str] = None
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    is_symlink: bool = False
    symlink_target: Optional[str] = None


async def read_text_async(path: Path) -> Optional[str]:
    return await asyncio.to_thread(read_text, path)


async def read_json_async(path: Path, warnings: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
    return await asyncio.to_thread(read_json, path, warnings)


async def read_markdown_file(path: Path, base: Path) -> Optional[MarkdownFile]:
    content = await read_text_async(path)
    if content is None:
        return None
    frontmatter, body = parse_frontmatter(content)
    name = path.relative_to(base).with_suffix("").as_posix()
    return MarkdownFile(path=str(path), name=name, content=content, frontmatter=frontmatter, body=body)


async def scan_markdown_dir(
    directory: Path,
    recursive: bool = False,
    suffixes: Iterable[str] = (".md",),
    warnings: Optional[List[str]] = None,
) -> List[MarkdownFile]:
    files = await asyncio.to_thread(glob_markdown, directory, recursive, tuple(suffixes))
    return await settle_all((read_markdown_file(f, directory) for f in files), warnings)


async def _read_skill(skill_dir: Path) -> SkillInfo:
    is_symlink = skill_dir.is_symlink()
    target = os.readlink(skill_dir) if is_symlink else None
    skill_md = skill_dir / "SKILL.md"
    content = await read_text_async(skill_md)
    frontmatter: Dict[str, Any] = {}
    if content is not None:
        frontmatter, _ = parse_frontmatter(content)
    name = frontmatter.get("name") or skill_dir.name
    description = frontmatter.get("description")
    return SkillInfo(
        path=str(skill_dir),
        name=str(name),
        description=str(description) if description is not None else None,
        content=content,
        frontmatter=frontmatter,
        is_symlink=is_symlink,
        symlink_target=target,
    )


async def scan_skills_dir(
    directory: Path,
    skip: Iterable[str] = (),
    warnings: Optional[List[str]] = None,
) -> List[SkillInfo]:
    """Skill dir khong co SKILL.md van duoc liet ke (chi co ten)."""
    skipped = set(skip)
    entries = await asyncio.to_thread(list_dir, directory)
    dirs = [e for e in entries if e.is_dir() and e.name not in skipped and not e.name.startswith(".")]
    return await settle_all((_read_skill(d) for d in dirs), warnings)


def dedupe_skills(primary: List[SkillInfo], extra: List[SkillInfo]) -> List[SkillInfo]:
    seen = {s.name for s in primary}
    merged = list(primary)
    for skill in extra:
        if skill.name not in seen:
            merged.append(skill)
            seen.add(skill.name)
    return merged
