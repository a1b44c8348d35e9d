"""Document parsers: manifests, authoring-tool story files, XML helpers."""

from lessonprobe.core.parsers.descriptor import DEFAULT_MAX_DEPTH, DescriptorParser
from lessonprobe.core.parsers.story import STORY_DOCUMENTS, StoryParser, find_story_document
from lessonprobe.core.parsers.xml import XMLParser

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DescriptorParser",
    "STORY_DOCUMENTS",
    "StoryParser",
    "XMLParser",
    "find_story_document",
]
