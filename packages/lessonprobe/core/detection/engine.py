"""Rule engine - ranks package families for a file listing."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from lessonprobe.core.detection.rules import RuleTable, default_rule_table
from lessonprobe.core.models.files import FileEntry

logger = logging.getLogger(__name__)


class DetectionResult(BaseModel):
    """Score of one family for one file listing.

    Attributes:
        family: Family key from the rule table
        confidence: Average confidence of the matched rules only
        matched_rule_count: Rules that matched
        total_rule_count: Rules registered for the family
        matched_rules: Names of the matched rules, in table order
    """

    model_config = ConfigDict(frozen=True)

    family: str
    confidence: float = Field(ge=0, le=100)
    matched_rule_count: int
    total_rule_count: int
    matched_rules: list[str] = Field(default_factory=list)


class RuleEngine:
    """Evaluates a rule table against file listings.

    A family's score is the mean confidence of its *matched* rules; unmatched
    rules do not pull the score down. Families with no match are not ranked.
    Exact ties keep table order (stable sort).

    Example:
        >>> engine = RuleEngine()
        >>> engine.detect([FileEntry(name="imsmanifest.xml", path="imsmanifest.xml")]).family
        'scorm'
    """

    def __init__(self, table: RuleTable | None = None) -> None:
        self.table = table if table is not None else default_rule_table()

    def rank(self, files: Sequence[FileEntry]) -> list[DetectionResult]:
        """All families with at least one matching rule, best first."""
        results: list[DetectionResult] = []
        for family, rules in self.table.items():
            matched = [rule for rule in rules if rule.matches(files)]
            if not matched:
                continue
            results.append(
                DetectionResult(
                    family=family,
                    confidence=sum(rule.confidence for rule in matched) / len(matched),
                    matched_rule_count=len(matched),
                    total_rule_count=len(rules),
                    matched_rules=[rule.name for rule in matched],
                )
            )

        # sorted() is stable: equal scores stay in table order
        return sorted(results, key=lambda r: r.confidence, reverse=True)

    def detect(self, files: Sequence[FileEntry]) -> DetectionResult | None:
        """Best family, or None when no rule matched at all."""
        ranked = self.rank(files)
        if not ranked:
            logger.debug(f"No detection rule matched {len(files)} file(s)")
            return None

        best = ranked[0]
        logger.debug(
            f"Detected family {best.family!r} at {best.confidence:.1f} "
            f"({best.matched_rule_count}/{best.total_rule_count} rules)"
        )
        return best
