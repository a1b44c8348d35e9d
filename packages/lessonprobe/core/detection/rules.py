"""Detection rules and the family → rules table.

A rule is a named, weighted predicate over the whole file listing. Predicates
are built by the small factories below: each returns a pure closure that
neither mutates its input nor keeps state, so rules can be evaluated
repeatedly, concurrently and in any file order.

Keyword checks are case-sensitive substring matches.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from lessonprobe.core.models.enums import PackageFamily
from lessonprobe.core.models.files import FileEntry

logger = logging.getLogger(__name__)

Predicate = Callable[[Sequence[FileEntry]], bool]


class DetectionRule(BaseModel):
    """Named predicate with the confidence it contributes when it matches."""

    model_config = ConfigDict(frozen=True)

    name: str
    predicate: Predicate = Field(repr=False)
    confidence: int = Field(ge=0, le=100)

    def matches(self, files: Sequence[FileEntry]) -> bool:
        return bool(self.predicate(files))


# ----------------------------------------------------------------------
# Predicate factories
# ----------------------------------------------------------------------


def file_named(name: str) -> Predicate:
    """Some file is named exactly ``name``."""

    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(f.name == name for f in files)

    return predicate


def name_contains(fragment: str) -> Predicate:
    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(fragment in f.name for f in files)

    return predicate


def name_endswith(suffix: str) -> Predicate:
    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(f.name.endswith(suffix) for f in files)

    return predicate


def path_contains(*fragments: str) -> Predicate:
    """Some file path contains any of ``fragments``."""

    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(fragment in f.path for f in files for fragment in fragments)

    return predicate


def content_contains_any(*keywords: str) -> Predicate:
    """Some file's sampled content contains at least one keyword."""

    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(f.content and any(k in f.content for k in keywords) for f in files)

    return predicate


def content_contains_all(*keywords: str) -> Predicate:
    """Some single file's sampled content contains every keyword."""

    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(f.content and all(k in f.content for k in keywords) for f in files)

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    def predicate(files: Sequence[FileEntry]) -> bool:
        return any(p(files) for p in predicates)

    return predicate


# ----------------------------------------------------------------------
# Rule table
# ----------------------------------------------------------------------


class RuleTable:
    """Ordered family → rules registry.

    Family order matters: the engine breaks exact score ties in favour of the
    family registered first. ``merge`` is not synchronized; call it during
    initialization or guard it externally.

    Example:
        >>> table = default_rule_table()
        >>> table.merge({"timeline": [DetectionRule(name="timeline.json",
        ...     predicate=file_named("timeline.json"), confidence=80)]})
        >>> table.families()[-1]
        'timeline'
    """

    def __init__(self, rules: Mapping[str, Iterable[DetectionRule]] | None = None) -> None:
        self._rules: dict[str, list[DetectionRule]] = {}
        if rules:
            self.merge(rules)

    def merge(self, rules: Mapping[str, Iterable[DetectionRule]]) -> None:
        """Add or replace whole family entries.

        Replaced families keep their position; new families go to the end.
        """
        for family, family_rules in rules.items():
            key = family.value if isinstance(family, PackageFamily) else str(family)
            action = "Replaced" if key in self._rules else "Added"
            self._rules[key] = list(family_rules)
            logger.debug(f"{action} detection rules for family {key!r} ({len(self._rules[key])})")

    def families(self) -> list[str]:
        return list(self._rules)

    def rules_for(self, family: PackageFamily | str) -> list[DetectionRule]:
        key = family.value if isinstance(family, PackageFamily) else family
        return list(self._rules.get(key, []))

    def items(self) -> Iterator[tuple[str, list[DetectionRule]]]:
        return iter(self._rules.items())

    @property
    def rule_count(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, family: object) -> bool:
        key = family.value if isinstance(family, PackageFamily) else family
        return key in self._rules


def default_rule_table() -> RuleTable:
    """Built-in detection rules, in tie-break order."""
    return RuleTable(
        {
            PackageFamily.SCORM: [
                DetectionRule(
                    name="imsmanifest.xml", predicate=file_named("imsmanifest.xml"), confidence=100
                ),
                DetectionRule(
                    name="SCORM API",
                    predicate=content_contains_any(
                        "API", "Initialize", "Finish", "GetValue", "SetValue"
                    ),
                    confidence=80,
                ),
            ],
            PackageFamily.STORYLINE: [
                DetectionRule(
                    name="story_content folder",
                    predicate=path_contains("story_content"),
                    confidence=90,
                ),
                DetectionRule(name="story.js", predicate=file_named("story.js"), confidence=85),
                DetectionRule(name="story.html", predicate=file_named("story.html"), confidence=80),
                DetectionRule(
                    name="Articulate player",
                    predicate=content_contains_all("articulate", "player"),
                    confidence=75,
                ),
            ],
            PackageFamily.POWERPOINT: [
                DetectionRule(
                    name="ppt folder", predicate=path_contains("/ppt/", "\\ppt\\"), confidence=85
                ),
                DetectionRule(
                    name=".ppsx extension", predicate=name_endswith(".ppsx"), confidence=90
                ),
                DetectionRule(
                    name="Microsoft Office",
                    predicate=content_contains_all("Microsoft", "PowerPoint"),
                    confidence=70,
                ),
            ],
            PackageFamily.QUIZ: [
                DetectionRule(
                    name="quiz data",
                    predicate=any_of(
                        name_contains("quiz"), content_contains_all("question", "answer")
                    ),
                    confidence=70,
                ),
                DetectionRule(
                    name="assessment structure",
                    predicate=content_contains_any("multiple choice", "true/false", "mcq", "tf"),
                    confidence=65,
                ),
            ],
            PackageFamily.FLASHCARD: [
                DetectionRule(
                    name="flashcard data",
                    predicate=any_of(
                        name_contains("flashcard"), content_contains_all("term", "definition")
                    ),
                    confidence=70,
                ),
                DetectionRule(
                    name="card structure",
                    predicate=content_contains_all("front", "back"),
                    confidence=65,
                ),
            ],
            PackageFamily.DRAGDROP: [
                DetectionRule(
                    name="drag drop structure",
                    predicate=content_contains_all("drag", "drop", "match"),
                    confidence=70,
                ),
                DetectionRule(
                    name="matching data",
                    predicate=any_of(name_contains("match"), content_contains_all("pair", "connect")),
                    confidence=65,
                ),
            ],
            PackageFamily.CROSSWORD: [
                DetectionRule(
                    name="crossword structure",
                    predicate=content_contains_all("across", "down", "clue"),
                    confidence=75,
                ),
                DetectionRule(
                    name="grid pattern",
                    predicate=content_contains_all("grid", "cell"),
                    confidence=65,
                ),
            ],
        }
    )
