"""Authoring-tool project parser - Storyline-style story XML into an InteractionModel.

Storyline packages keep their slide model in one XML document (``story.xml``,
``story_content/model.xml``, ...). Only the parts the template mapper needs
are extracted: slide text and media, declared interactions and questions.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from lessonprobe.core.models.interactions import Interaction, InteractionModel, Question, Slide
from lessonprobe.core.parsers.xml import (
    XMLParser,
    attr,
    descendants,
    first_descendant,
    local_name,
    text_of,
)
from lessonprobe.core.utils.logging import get_logger

logger = get_logger(__name__)

# Candidate story documents inside a package, checked in order.
STORY_DOCUMENTS = (
    "story.xml",
    "story_content/model.xml",
    "story/story.xml",
    "course.xml",
    "presentation.xml",
)

INTERACTION_TAGS = ("trigger", "action", "question", "quiz", "assessment")
QUESTION_TAGS = ("question", "assessment", "quiz")
MEDIA_TAGS = ("image", "video", "audio")


class StoryParser:
    """Parser for authoring-tool story documents.

    Example:
        >>> model = StoryParser().parse(story_xml)
        >>> len(model.slides), len(model.interactions)
    """

    def __init__(self) -> None:
        self._xml_parser = XMLParser()

    def parse(self, raw_text: str) -> InteractionModel:
        """Parse a story document.

        Raises:
            ValueError: If XML is malformed
        """
        root = self._xml_parser.parse_string(raw_text)

        model = InteractionModel(
            title=attr(root, "title", "name") or text_of(first_descendant(root, "title")),
            description=text_of(first_descendant(root, "description")),
            slides=self._extract_slides(root),
            interactions=self._extract_interactions(root),
            quizzes=self._extract_questions(root),
        )
        logger.debug(
            f"Parsed story: {len(model.slides)} slides, {len(model.interactions)} interactions, "
            f"{len(model.quizzes)} questions"
        )
        return model

    def _extract_slides(self, root: ET.Element) -> list[Slide]:
        slides = []
        for index, slide_elem in enumerate(self._all(root, "slide")):
            texts = [text_of(t) or (attr(t, "value") or "") for t in descendants(slide_elem, "text")]
            slides.append(
                Slide(
                    id=attr(slide_elem, "id") or f"slide_{index}",
                    title=attr(slide_elem, "name", "title") or f"Slide {index + 1}",
                    text=" ".join(t for t in texts if t),
                    media=[
                        local_name(node.tag).lower()
                        for node in slide_elem.iter()
                        if isinstance(node.tag, str) and local_name(node.tag).lower() in MEDIA_TAGS
                    ],
                    interactions=self._extract_interactions(slide_elem),
                )
            )
        return slides

    def _extract_interactions(self, elem: ET.Element) -> list[Interaction]:
        interactions = [
            Interaction(id=attr(node, "id"), type=tag)
            for tag in INTERACTION_TAGS
            for node in self._all(elem, tag)
        ]
        # Explicit <interaction type="..."> declarations carry their own type
        interactions.extend(
            Interaction(id=attr(node, "id"), type=attr(node, "type") or "interaction")
            for node in self._all(elem, "interaction")
        )
        return interactions

    def _extract_questions(self, root: ET.Element) -> list[Question]:
        return [
            Question(
                id=attr(node, "id"),
                type=attr(node, "questiontype", "type") or "multiplechoice",
                prompt=attr(node, "prompt") or text_of(node),
            )
            for tag in QUESTION_TAGS
            for node in self._all(root, tag)
        ]

    @staticmethod
    def _all(elem: ET.Element, name: str) -> list[ET.Element]:
        """``elem`` itself (when it matches) plus matching descendants."""
        matches = list(descendants(elem, name))
        if isinstance(elem.tag, str) and local_name(elem.tag).lower() == name:
            matches.insert(0, elem)
        return matches


def find_story_document(member_paths: list[str]) -> str | None:
    """First known story document among package members (matched by path suffix)."""
    normalized = {p.replace("\\", "/").lstrip("/").lower(): p for p in member_paths}
    for candidate in STORY_DOCUMENTS:
        for lowered, original in normalized.items():
            if lowered == candidate or lowered.endswith("/" + candidate):
                return original
    return None
