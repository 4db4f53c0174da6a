"""
Format scanners: read each ecosystem's on-disk configuration as-is.

The result mirrors the format's own layout; configconv.canonical turns it
into the shared model.
"""

import asyncio
from typing import Union

from configconv.core.types import AgentFormat
from configconv.scanners._common import ScanOptions
from configconv.scanners.claude_code import ClaudeCodeScanResult, scan_claude_code
from configconv.scanners.cursor import CursorScanResult, scan_cursor
from configconv.scanners.opencode import OpenCodeScanResult, scan_opencode

FormatScanResult = Union[ClaudeCodeScanResult, OpenCodeScanResult, CursorScanResult]


async def scan_format(fmt: AgentFormat, options: ScanOptions) -> FormatScanResult:
    if fmt is AgentFormat.CLAUDE_CODE:
        return await scan_claude_code(options)
    elif fmt is AgentFormat.OPENCODE:
        return await scan_opencode(options)
    elif fmt is AgentFormat.CURSOR:
        return await scan_cursor(options)
    raise ValueError(f"No scanner for {fmt!r}")


def scan(fmt: AgentFormat, options: ScanOptions) -> FormatScanResult:
    """Synchronous entry point. Raises ScanError on fatal I/O failures."""
    return asyncio.run(scan_format(fmt, options))


__all__ = [
    "ClaudeCodeScanResult",
    "CursorScanResult",
    "FormatScanResult",
    "OpenCodeScanResult",
    "ScanOptions",
    "scan",
    "scan_format",
]
