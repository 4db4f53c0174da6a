"""
Cursor converter: canonical model -> mcp.json, cli-config.json, .cursor/rules/*.mdc, agents, commands, skills.
"""

from configconv.converters._cursor_impl import convert_to_cursor
from configconv.core.converter import BaseConverter, ConvertOptions
from configconv.core.types import AgentFormat, CanonicalScanResult, ConversionOutput


class CursorConverter(BaseConverter):
    """Converter cho Cursor format."""

    @property
    def format(self) -> AgentFormat:
        return AgentFormat.CURSOR

    def convert(self, canonical: CanonicalScanResult, options: ConvertOptions) -> ConversionOutput:
        return convert_to_cursor(canonical, options)
