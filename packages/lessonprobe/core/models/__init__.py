"""Data model shared by all lessonprobe stages."""

from lessonprobe.core.models.descriptor import (
    Descriptor,
    FileRef,
    Objective,
    OrganizationItem,
    OrganizationNode,
    Resource,
    ResourceRef,
)
from lessonprobe.core.models.enums import PackageFamily, PackageStatus, TemplateId
from lessonprobe.core.models.files import FileEntry
from lessonprobe.core.models.interactions import Interaction, InteractionModel, Question, Slide
from lessonprobe.core.models.package import (
    BatchReport,
    PackageRef,
    PackageResult,
    ProcessedPackage,
    TemplateConfiguration,
    TemplateRecommendation,
)

__all__ = [
    # Enums
    "PackageFamily",
    "PackageStatus",
    "TemplateId",
    # Inputs
    "FileEntry",
    "PackageRef",
    # Descriptor tree
    "Descriptor",
    "FileRef",
    "Objective",
    "OrganizationItem",
    "OrganizationNode",
    "Resource",
    "ResourceRef",
    # Authoring-tool model
    "Interaction",
    "InteractionModel",
    "Question",
    "Slide",
    # Outputs
    "BatchReport",
    "PackageResult",
    "ProcessedPackage",
    "TemplateConfiguration",
    "TemplateRecommendation",
]
