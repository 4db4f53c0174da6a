"""
Claude Code converter: canonical model -> settings.json, .mcp.json, CLAUDE.md, .claude/agents, commands, skills.
"""

from configconv.converters._claude_impl import convert_to_claude_code
from configconv.core.converter import BaseConverter, ConvertOptions
from configconv.core.types import AgentFormat, CanonicalScanResult, ConversionOutput


class ClaudeCodeConverter(BaseConverter):
    """Converter cho Claude Code format."""

    @property
    def format(self) -> AgentFormat:
        return AgentFormat.CLAUDE_CODE

    def convert(self, canonical: CanonicalScanResult, options: ConvertOptions) -> ConversionOutput:
        return convert_to_claude_code(canonical, options)
