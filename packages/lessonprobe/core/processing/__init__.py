"""Package processing: detection, parsing and mapping end to end."""

from lessonprobe.core.processing.errors import PackageNotFoundError
from lessonprobe.core.processing.processor import (
    TITLE_SIGNAL_CONFIDENCE,
    PackageProcessor,
    PackageProcessorSync,
)
from lessonprobe.core.processing.synthetic import package_name, synthetic_descriptor

__all__ = [
    "PackageNotFoundError",
    "PackageProcessor",
    "PackageProcessorSync",
    "TITLE_SIGNAL_CONFIDENCE",
    "package_name",
    "synthetic_descriptor",
]
