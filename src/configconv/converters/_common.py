"""Helpers shared by the three target converters."""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from configconv.core.errors import ConversionError
from configconv.core.types import (
    CanonicalScanResult,
    ConversionReport,
    RulesFile,
    ScopeConfig,
    SkillDefinition,
)
from configconv.utils import extract_body, logger

# Rule types that apply to every request and belong in CLAUDE.md / AGENTS.md
ALWAYS_RULE_TYPES = ("always", "general")


@contextmanager
def item_errors(report: ConversionReport, category: str, name: str) -> Iterator[None]:
    """A failure converting one item is recorded and the run continues."""
    try:
        yield
    except (ConversionError, AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("Failed to convert %s '%s': %s", category, name, e)
        report.errors.append(f"Failed to convert {category} '{name}': {e}")


def iter_scopes(canonical: CanonicalScanResult) -> Iterator[Tuple[Optional[str], ScopeConfig]]:
    """(None, global scope) first, then (project path, project) in scan order."""
    yield None, canonical.global_config
    for project in canonical.projects:
        yield project.path, project


def scope_label(project_path: Optional[str]) -> str:
    return project_path or "global"


def report_extra(
    report: ConversionReport,
    category: str,
    source: str,
    extra: Dict[str, Any],
    target_name: str,
    exclude: Iterable[str] = (),
) -> None:
    """Cross-format only: unknown fields cannot be carried over."""
    excluded = set(exclude) | {"$schema"}
    keys = sorted(k for k in extra if k not in excluded)
    if keys:
        report.add_skipped(category, source, f"No {target_name} equivalent for: {', '.join(keys)}")


def is_always_rule(rule: RulesFile) -> bool:
    return rule.rule_type in ALWAYS_RULE_TYPES or rule.always_apply


def combine_rules(rules: List[RulesFile]) -> Optional[str]:
    """Bodies of several rule files joined into one markdown document."""
    sections = [body for body in (extract_body(r.content) for r in rules) if body]
    if not sections:
        return None
    return "\n\n".join(sections) + "\n"


def emit_rules_verbatim(files: Dict[str, str], report: ConversionReport, rules: List[RulesFile]) -> None:
    """Identity conversion: every rule file goes back to where it was read from."""
    for rule in rules:
        files[rule.path] = rule.content
        report.add_converted("rules", rule.path, rule.path)


def emit_skills(
    files: Dict[str, str],
    report: ConversionReport,
    skills: List[SkillDefinition],
    skills_dir: Path,
    identity: bool,
) -> None:
    for skill in skills:
        if skill.content is None:
            report.add_skipped("skills", skill.path, "Directory has no SKILL.md")
            continue
        if identity:
            if skill.is_symlink:
                report.add_skipped("skills", skill.path, f"Symlink to {skill.symlink_target}, left in place")
                continue
            dest = Path(skill.path) / "SKILL.md"
        else:
            dest = skills_dir / skill.name / "SKILL.md"
        files[str(dest)] = skill.content
        report.add_converted("skills", skill.path, str(dest))


def heuristic_warning(report: ConversionReport, kind: str, name: str, field_name: str, value: Any) -> None:
    report.warnings.append(f"{kind} '{name}': {field_name} not set, inferred {value!r} from name/description")


def tools_warning(report: ConversionReport, name: str, tools: List[str], permission: Dict[str, Any]) -> None:
    mapped = ", ".join(f"{k}: {v}" for k, v in permission.items())
    report.warnings.append(f"Agent '{name}': tools [{', '.join(tools)}] mapped to permission {{{mapped}}}")


def model_translation_warnings(report: ConversionReport, canonical: CanonicalScanResult) -> None:
    """Moi model id doi qua alias map / overrides luc canonicalize -> mot warning."""
    for note in canonical.model_translations:
        report.warnings.append(f"{note.where}: model {note.source!r} translated to {note.target!r} via {note.via}")
