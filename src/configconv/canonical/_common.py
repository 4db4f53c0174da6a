"""Helpers shared by the per-format canonicalizers."""

from typing import Any, Dict, Iterable, List, Optional

from configconv.core.types import CommandDefinition, RulesFile, SkillDefinition
from configconv.scanners._common import MarkdownFile, SkillInfo


def str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def str_dict(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def split_tools(value: Any) -> List[str]:
    """'Read, Grep' | ['Read', 'Grep'] -> ['Read', 'Grep']"""
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, list):
        return [str(t).strip() for t in value if str(t).strip()]
    return []


def extra_keys(data: Dict[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    known_set = set(known)
    return {k: v for k, v in data.items() if k not in known_set}


def skill_from_scan(info: SkillInfo) -> SkillDefinition:
    return SkillDefinition(
        name=info.name,
        path=info.path,
        description=info.description,
        content=info.content,
        is_symlink=info.is_symlink,
        symlink_target=info.symlink_target,
    )


def command_from_markdown(md: MarkdownFile) -> CommandDefinition:
    return CommandDefinition(
        name=md.name,
        path=md.path,
        body=md.body,
        description=str_or_none(md.frontmatter.get("description")),
        extra=extra_keys(md.frontmatter, ("description",)),
    )


def always_rule(path: Optional[str], name: str, content: str) -> RulesFile:
    """CLAUDE.md / AGENTS.md / .cursorrules: applied to every request."""
    return RulesFile(path=path or name, name=name, content=content, rule_type="always", always_apply=True)
