"""
OpenCode converter: canonical model -> opencode.json, AGENTS.md, .opencode/agents, commands, skills.
"""

from configconv.converters._opencode_impl import convert_to_opencode
from configconv.core.converter import BaseConverter, ConvertOptions
from configconv.core.types import AgentFormat, CanonicalScanResult, ConversionOutput


class OpenCodeConverter(BaseConverter):
    """Converter cho OpenCode format."""

    @property
    def format(self) -> AgentFormat:
        return AgentFormat.OPENCODE

    def convert(self, canonical: CanonicalScanResult, options: ConvertOptions) -> ConversionOutput:
        return convert_to_opencode(canonical, options)
