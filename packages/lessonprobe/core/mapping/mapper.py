"""Template mapping from descriptors and authoring-tool interaction models.

Both procedures are ordered decision lists: the first matching rule wins and
count ties go to the bucket declared first. The orders below are part of the
observable behaviour; reordering a table changes classification results.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from lessonprobe.core.mapping.defaults import template_for_family
from lessonprobe.core.models.descriptor import Descriptor
from lessonprobe.core.models.enums import PackageFamily, TemplateId
from lessonprobe.core.models.interactions import InteractionModel, Slide
from lessonprobe.core.models.package import TemplateRecommendation
from lessonprobe.core.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    """Substring (and optional file-extension) match that yields a template."""

    keywords: tuple[str, ...]
    template: TemplateId
    confidence: float
    extension: re.Pattern[str] | None = None

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        if any(keyword in lowered for keyword in self.keywords):
            return True
        return self.extension is not None and self.extension.search(lowered) is not None

    def recommend(self) -> TemplateRecommendation:
        return TemplateRecommendation(template=self.template, confidence=self.confidence)


HREF_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("quiz", "assessment", "exam", "test"), TemplateId.MCQ, 90),
    KeywordRule(
        ("video", "movie"),
        TemplateId.INTERACTIVEVIDEO,
        85,
        extension=re.compile(r"\.(mp4|avi|mov|wmv|flv|webm)$"),
    ),
    KeywordRule(
        ("slide", "presentation"),
        TemplateId.CONTENTREVEAL,
        80,
        extension=re.compile(r"\.(ppt|pptx|pps|ppsx)$"),
    ),
    KeywordRule(("flashcard", "card"), TemplateId.FLIPCARDS, 85),
)

ORGANIZATION_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("quiz", "assessment"), TemplateId.MCQ, 85),
    KeywordRule(("flashcard", "cards"), TemplateId.FLIPCARDS, 80),
    KeywordRule(("game", "activity"), TemplateId.GAMEARENA, 75),
)

DESCRIPTOR_DEFAULT = TemplateRecommendation(template=TemplateId.CONTENTREVEAL, confidence=60)

# Bucket order doubles as the tie-break order.
INTERACTION_BUCKETS: tuple[KeywordRule, ...] = (
    KeywordRule(("quiz", "question", "mcq"), TemplateId.MCQ, 90),
    KeywordRule(("flash", "card"), TemplateId.FLIPCARDS, 85),
    KeywordRule(("drag", "drop", "match"), TemplateId.DRAGDROP, 85),
    KeywordRule(("survey", "poll"), TemplateId.SURVEY, 80),
    KeywordRule(("timeline", "chronology"), TemplateId.TIMELINE, 80),
    KeywordRule(("reveal", "hide", "show"), TemplateId.CONTENTREVEAL, 80),
    KeywordRule(("label", "diagram"), TemplateId.LABELDIAGRAM, 85),
    KeywordRule(("pick", "select"), TemplateId.PICKMANY, 85),
)

NO_SLIDES_DEFAULT = TemplateRecommendation(template=TemplateId.CONTENTREVEAL, confidence=60)
SLIDES_DEFAULT = TemplateRecommendation(template=TemplateId.CONTENTREVEAL, confidence=65)

_QUESTION_MARKERS = ("question", "?")
_MEDIA_MARKERS = ("image", "video", "audio")


class TemplateMapper:
    """Recommends a template for a parsed descriptor or an interaction model.

    Example:
        >>> mapper = TemplateMapper()
        >>> d = Descriptor(resources=[Resource(href="assessment/final_exam.html")])
        >>> mapper.map_descriptor_to_template(d)
        TemplateRecommendation(template=<TemplateId.MCQ: 'mcq'>, confidence=90.0)
    """

    def map_descriptor_to_template(self, descriptor: Descriptor) -> TemplateRecommendation:
        """Resource hrefs first, then the first organization title, then the default."""
        for resource in descriptor.resources:
            href = resource.href or ""
            for rule in HREF_RULES:
                if rule.matches(href):
                    logger.debug(f"Resource href {href!r} -> {rule.template.value}")
                    return rule.recommend()

        if descriptor.organizations:
            org_title = descriptor.organizations[0].title or ""
            for rule in ORGANIZATION_RULES:
                if rule.matches(org_title):
                    logger.debug(f"Organization title {org_title!r} -> {rule.template.value}")
                    return rule.recommend()

        return DESCRIPTOR_DEFAULT

    def map_interactions_to_template(self, model: InteractionModel) -> TemplateRecommendation:
        """Majority interaction bucket; slide analysis when no interaction classifies."""
        counts = self.count_interactions(model)
        best_index = 0
        for index, count in enumerate(counts):
            # Strict comparison keeps the earliest bucket on ties
            if count > counts[best_index]:
                best_index = index

        if counts[best_index] == 0:
            return self.analyze_slides(model.slides)

        rule = INTERACTION_BUCKETS[best_index]
        logger.debug(f"Interaction counts {counts} -> {rule.template.value}")
        return rule.recommend()

    def count_interactions(self, model: InteractionModel) -> list[int]:
        """Per-bucket counts in INTERACTION_BUCKETS order; quizzes add to the quiz bucket."""
        counts = [0] * len(INTERACTION_BUCKETS)
        for interaction in model.interactions:
            interaction_type = interaction.type or ""
            for index, rule in enumerate(INTERACTION_BUCKETS):
                if rule.matches(interaction_type):
                    counts[index] += 1
                    break
        counts[0] += len(model.quizzes)
        return counts

    def analyze_slides(self, slides: Sequence[Slide]) -> TemplateRecommendation:
        """Majority vote over slide content markers."""
        if not slides:
            return NO_SLIDES_DEFAULT

        with_questions = 0
        with_media = 0
        with_interactions = 0
        for slide in slides:
            text = slide.text.lower()
            if any(marker in text for marker in _QUESTION_MARKERS) or slide.interactions:
                with_questions += 1
            if any(marker in text for marker in _MEDIA_MARKERS) or slide.media:
                with_media += 1
            if slide.interactions:
                with_interactions += 1

        half = len(slides) / 2
        if with_questions > half:
            return TemplateRecommendation(template=TemplateId.MCQ, confidence=75)
        if with_media > half:
            return TemplateRecommendation(template=TemplateId.INTERACTIVEVIDEO, confidence=70)
        if with_interactions > half:
            return TemplateRecommendation(template=TemplateId.GAMEARENA, confidence=70)
        return SLIDES_DEFAULT

    def map_family_to_template(
        self, family: PackageFamily | str, confidence: float
    ) -> TemplateRecommendation:
        """Generic family mapping, carrying the detection confidence through."""
        return TemplateRecommendation(
            template=template_for_family(family),
            confidence=max(0.0, min(100.0, confidence)),
        )


def is_valid_template(value: str | None) -> bool:
    """True when ``value`` names a TemplateId."""
    return value in {t.value for t in TemplateId}
