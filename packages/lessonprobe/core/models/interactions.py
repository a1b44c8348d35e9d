"""Authoring-tool slide/interaction model.

Produced by StoryParser from a Storyline-style project document and consumed
by TemplateMapper.map_interactions_to_template.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Interaction(BaseModel):
    """Declared interaction (trigger, question, drag target, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    type: str = ""


class Question(BaseModel):
    """Question/quiz/assessment node."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    type: str = "multiplechoice"
    prompt: str = ""


class Slide(BaseModel):
    """One slide with its visible text and media element kinds."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    text: str = ""
    media: list[str] = Field(default_factory=list, description="Media kinds: image, video, audio")
    interactions: list[Interaction] = Field(default_factory=list)


class InteractionModel(BaseModel):
    """Slides, interactions and quizzes extracted from an authoring-tool project."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    slides: list[Slide] = Field(default_factory=list)
    interactions: list[Interaction] = Field(default_factory=list)
    quizzes: list[Question] = Field(default_factory=list)
