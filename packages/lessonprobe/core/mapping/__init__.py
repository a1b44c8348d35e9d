"""Template mapping: descriptors and interaction models to rendering templates."""

from lessonprobe.core.mapping.defaults import (
    DEFAULT_CONFIGURATIONS,
    GLOBAL_DEFAULT_TEMPLATE,
    default_configuration,
    template_for_family,
)
from lessonprobe.core.mapping.mapper import TemplateMapper, is_valid_template

__all__ = [
    "DEFAULT_CONFIGURATIONS",
    "GLOBAL_DEFAULT_TEMPLATE",
    "TemplateMapper",
    "default_configuration",
    "is_valid_template",
    "template_for_family",
]
