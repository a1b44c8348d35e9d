"""Closed vocabularies shared across detection, mapping and processing."""

from enum import Enum


class TemplateId(str, Enum):
    """Rendering template a package is presented with."""

    MCQ = "mcq"
    FLIPCARDS = "flipcards"
    DRAGDROP = "dragdrop"
    CROSSWORD = "crossword"
    SURVEY = "survey"
    TIMELINE = "timeline"
    CONTENTREVEAL = "contentreveal"
    LABELDIAGRAM = "labeldiagram"
    PICKMANY = "pickmany"
    INTERACTIVEVIDEO = "interactivevideo"
    GAMEARENA = "gamearena"
    SCORMVIEWER = "scormviewer"  # Unknown / unmapped packages


class PackageFamily(str, Enum):
    """Coarse package category used during initial detection."""

    SCORM = "scorm"  # Structured manifest (imsmanifest.xml)
    STORYLINE = "storyline"  # Articulate Storyline authoring tool
    POWERPOINT = "powerpoint"
    QUIZ = "quiz"
    FLASHCARD = "flashcard"
    DRAGDROP = "dragdrop"
    CROSSWORD = "crossword"


class PackageStatus(str, Enum):
    """Outcome of processing a package."""

    PROCESSED = "processed"
    FALLBACK = "fallback"  # Synthetic descriptor after a parse/collaborator failure
