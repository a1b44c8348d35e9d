"""Collaborator abstraction layer for lessonprobe.

Async-first interfaces for the only I/O the classification core needs:
listing/reading package files and fetching descriptor text.

Example:
    >>> from lessonprobe.core.io import LocalFileLister, RoutingDescriptorSource
    >>> entries = await LocalFileLister().list_files("course.zip")
    >>> text = await RoutingDescriptorSource().fetch("https://example.org/imsmanifest.xml")
"""

from .errors import SourceError, SourceFetchError, SourceFormatError, SourceNotFoundError
from .impl_fake import FakeDescriptorSource, FakeFileLister
from .impl_http import HttpDescriptorSource, RoutingDescriptorSource, is_url
from .impl_local import LocalDescriptorSource, LocalFileLister
from .protocols import DescriptorSource, FileLister

__all__ = [
    # Protocols
    "DescriptorSource",
    "FileLister",
    # Implementations
    "FakeDescriptorSource",
    "FakeFileLister",
    "HttpDescriptorSource",
    "LocalDescriptorSource",
    "LocalFileLister",
    "RoutingDescriptorSource",
    # Errors
    "SourceError",
    "SourceFetchError",
    "SourceFormatError",
    "SourceNotFoundError",
    # Utilities
    "is_url",
]
