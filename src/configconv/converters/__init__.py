"""
Converters: canonical model -> target-format files (in memory).

Nothing here touches the filesystem; the writer service does that.
"""

from typing import Optional

from configconv.core.converter import ConvertOptions, get_converter
from configconv.core.types import AgentFormat, CanonicalScanResult, ConversionOutput


def universal_convert(
    canonical: CanonicalScanResult,
    to: AgentFormat,
    options: Optional[ConvertOptions] = None,
) -> ConversionOutput:
    return get_converter(to).convert(canonical, options or ConvertOptions())


__all__ = ["ConvertOptions", "universal_convert"]
