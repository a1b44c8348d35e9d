"""Static per-template defaults and the family→template table."""

from __future__ import annotations

from lessonprobe.core.models.enums import PackageFamily, TemplateId
from lessonprobe.core.models.package import TemplateConfiguration

_SCORED = TemplateConfiguration(mastery_score=70)
_UNSCORED = TemplateConfiguration(mastery_score=None)

DEFAULT_CONFIGURATIONS: dict[TemplateId, TemplateConfiguration] = {
    TemplateId.MCQ: _SCORED,
    TemplateId.FLIPCARDS: _UNSCORED,
    TemplateId.DRAGDROP: _SCORED,
    TemplateId.CROSSWORD: _UNSCORED,
    TemplateId.SURVEY: TemplateConfiguration(mastery_score=None, show_feedback=False),
    TemplateId.TIMELINE: _UNSCORED,
    TemplateId.CONTENTREVEAL: _UNSCORED,
    TemplateId.LABELDIAGRAM: _SCORED,
    TemplateId.PICKMANY: _SCORED,
    TemplateId.INTERACTIVEVIDEO: _UNSCORED,
    TemplateId.GAMEARENA: _UNSCORED,
    TemplateId.SCORMVIEWER: _UNSCORED,
}

# Families that carry no descriptor of their own map straight to a template.
FAMILY_TEMPLATES: dict[str, TemplateId] = {
    PackageFamily.QUIZ.value: TemplateId.MCQ,
    PackageFamily.FLASHCARD.value: TemplateId.FLIPCARDS,
    PackageFamily.DRAGDROP.value: TemplateId.DRAGDROP,
    PackageFamily.CROSSWORD.value: TemplateId.CROSSWORD,
    PackageFamily.POWERPOINT.value: TemplateId.CONTENTREVEAL,
    "timeline": TemplateId.TIMELINE,
}

GLOBAL_DEFAULT_TEMPLATE = TemplateId.CONTENTREVEAL


def default_configuration(template: TemplateId | str | None) -> TemplateConfiguration:
    """Default configuration for a template; unknown values get scormviewer defaults.

    Example:
        >>> default_configuration("survey").show_feedback
        False
        >>> default_configuration("nope") == default_configuration(TemplateId.SCORMVIEWER)
        True
    """
    try:
        key = TemplateId(template)
    except ValueError:
        key = TemplateId.SCORMVIEWER
    return DEFAULT_CONFIGURATIONS[key]


def template_for_family(family: PackageFamily | str) -> TemplateId:
    """Template for a generic package family (contentreveal when unmapped)."""
    key = family.value if isinstance(family, PackageFamily) else family
    return FAMILY_TEMPLATES.get(key, GLOBAL_DEFAULT_TEMPLATE)
