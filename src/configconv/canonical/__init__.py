"""
Canonicalizer: format-specific scan result -> CanonicalScanResult.

Pure functions, no I/O. Diff and migrate only ever look at canonical data.
"""

from typing import Dict, Optional

from configconv.canonical.claude_code import claude_code_to_canonical
from configconv.canonical.cursor import cursor_to_canonical_result
from configconv.canonical.opencode import opencode_to_canonical_result
from configconv.core.types import AgentFormat, CanonicalScanResult


def to_canonical(scan_result, model_overrides: Optional[Dict[str, str]] = None) -> CanonicalScanResult:
    fmt = scan_result.format
    if fmt is AgentFormat.CLAUDE_CODE:
        return claude_code_to_canonical(scan_result, model_overrides)
    elif fmt is AgentFormat.OPENCODE:
        return opencode_to_canonical_result(scan_result, model_overrides)
    elif fmt is AgentFormat.CURSOR:
        return cursor_to_canonical_result(scan_result)
    raise ValueError(f"No canonicalizer for {fmt!r}")


__all__ = ["to_canonical"]
