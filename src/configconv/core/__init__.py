"""Core abstractions for configconv."""

from .errors import BackupError, ConfigConvError, ConversionError, ScanError, UsageError
from .types import (
    AgentFormat,
    CanonicalScanResult,
    ConversionOutput,
    ConversionReport,
    ProjectConfig,
    ScopeConfig,
)
from .converter import BaseConverter, ConvertOptions, get_converter

__all__ = [
    "AgentFormat",
    "BackupError",
    "BaseConverter",
    "CanonicalScanResult",
    "ConfigConvError",
    "ConversionError",
    "ConversionOutput",
    "ConversionReport",
    "ConvertOptions",
    "ProjectConfig",
    "ScanError",
    "ScopeConfig",
    "UsageError",
    "get_converter",
]
