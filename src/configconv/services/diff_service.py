"""
Diff: compare two canonical scan results by name.

Ket qua chi phu thuoc vao du lieu canonical, nen so sanh giua hai format bat ky.
"""

from typing import Callable, Iterable, List, Optional, Tuple

from configconv.core.types import CanonicalScanResult, DiffEntry, DiffSummary, ScopeConfig

NAME_CATEGORIES: List[Tuple[str, Callable[[ScopeConfig], Iterable[str]]]] = [
    ("mcp", lambda scope: scope.mcp_servers.keys()),
    ("agents", lambda scope: (a.name for a in scope.agents)),
    ("commands", lambda scope: (c.name for c in scope.commands)),
    ("skills", lambda scope: (s.name for s in scope.skills)),
]


def _compare_scope(source: ScopeConfig, target: ScopeConfig, summary: DiffSummary, project: Optional[str]) -> None:
    if source.model == target.model:
        if source.model:
            summary.in_both.append(DiffEntry("model", source.model, project))
    else:
        if source.model:
            summary.only_in_source.append(DiffEntry("model", source.model, project))
        if target.model:
            summary.only_in_target.append(DiffEntry("model", target.model, project))

    for category, names in NAME_CATEGORIES:
        src_names = set(names(source))
        tgt_names = set(names(target))
        for key in sorted(src_names - tgt_names):
            summary.only_in_source.append(DiffEntry(category, key, project))
        for key in sorted(tgt_names - src_names):
            summary.only_in_target.append(DiffEntry(category, key, project))
        for key in sorted(src_names & tgt_names):
            summary.in_both.append(DiffEntry(category, key, project))


def compare_canonical(source: CanonicalScanResult, target: CanonicalScanResult) -> DiffSummary:
    """
    Global scope truoc, sau do tung project: project cua source theo thu tu scan,
    roi den project chi co o target.

    Doi xung ve noi dung: compare(A, B).only_in_source va compare(B, A).only_in_target
    chua cung cac entry (thu tu project co the khac).
    """
    summary = DiffSummary()
    _compare_scope(source.global_config, target.global_config, summary, None)

    source_projects = {p.path: p for p in source.projects}
    target_projects = {p.path: p for p in target.projects}
    for path in dict.fromkeys([p.path for p in source.projects] + [p.path for p in target.projects]):
        src = source_projects.get(path)
        tgt = target_projects.get(path)
        if src is not None and tgt is not None:
            _compare_scope(src, tgt, summary, path)
        elif src is not None:
            summary.only_in_source.append(DiffEntry("project", path))
        else:
            summary.only_in_target.append(DiffEntry("project", path))
    return summary
