"""Package store backends."""

from lessonprobe.core.caching.backends.memory import InMemoryPackageStore
from lessonprobe.core.caching.backends.null import NullPackageStore

__all__ = ["InMemoryPackageStore", "NullPackageStore"]
