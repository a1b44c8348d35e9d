"""Package family detection from file listings."""

from lessonprobe.core.detection.engine import DetectionResult, RuleEngine
from lessonprobe.core.detection.rules import (
    DetectionRule,
    RuleTable,
    any_of,
    content_contains_all,
    content_contains_any,
    default_rule_table,
    file_named,
    name_contains,
    name_endswith,
    path_contains,
)

__all__ = [
    # Engine
    "DetectionResult",
    "RuleEngine",
    # Rules
    "DetectionRule",
    "RuleTable",
    "default_rule_table",
    # Predicate factories
    "any_of",
    "content_contains_all",
    "content_contains_any",
    "file_named",
    "name_contains",
    "name_endswith",
    "path_contains",
]
