"""Processed-package caching for lessonprobe.

The processor keeps one ``ProcessedPackage`` per source path in an injected
store:
- ``InMemoryPackageStore`` for a single process (default)
- ``NullPackageStore`` to disable caching
- anything implementing ``PackageStore`` (e.g. an external key-value store)
"""

from lessonprobe.core.caching.backends.memory import InMemoryPackageStore
from lessonprobe.core.caching.backends.null import NullPackageStore
from lessonprobe.core.caching.protocols import PackageStore

__all__ = [
    # Core
    "PackageStore",
    # Backends
    "InMemoryPackageStore",
    "NullPackageStore",
]
