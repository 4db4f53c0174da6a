"""
Converter base class and closed-enum dispatch.
Adding a new format = new AgentFormat member + BaseConverter subclass + one branch here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

from .types import AgentFormat, CanonicalScanResult, ConversionOutput


@dataclass
class ConvertOptions:
    model_overrides: Dict[str, str] = field(default_factory=dict)
    default_model: Optional[str] = None
    default_small_model: Optional[str] = None


class BaseConverter(ABC):
    @property
    @abstractmethod
    def format(self) -> AgentFormat: ...

    @abstractmethod
    def convert(self, canonical: CanonicalScanResult, options: ConvertOptions) -> ConversionOutput: ...

    @property
    def name(self) -> str:
        return self.format.value

    @property
    def display_name(self) -> str:
        return self.format.display_name


def get_converter(fmt: AgentFormat) -> BaseConverter:
    # Lazy imports: converters depend on core
    if fmt is AgentFormat.OPENCODE:
        from configconv.converters.opencode import OpenCodeConverter
        return OpenCodeConverter()
    elif fmt is AgentFormat.CLAUDE_CODE:
        from configconv.converters.claude_code import ClaudeCodeConverter
        return ClaudeCodeConverter()
    elif fmt is AgentFormat.CURSOR:
        from configconv.converters.cursor import CursorConverter
        return CursorConverter()
    raise ValueError(f"No converter for {fmt!r}")
