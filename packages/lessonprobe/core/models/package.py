"""Processing inputs and outputs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lessonprobe.core.models.descriptor import Descriptor
from lessonprobe.core.models.enums import PackageStatus, TemplateId
from lessonprobe.core.models.files import FileEntry


class TemplateRecommendation(BaseModel):
    """Template choice with a 0-100 heuristic confidence (not a probability)."""

    model_config = ConfigDict(frozen=True)

    template: TemplateId
    confidence: float = Field(ge=0, le=100)


class TemplateConfiguration(BaseModel):
    """Runtime configuration handed to the rendering template."""

    model_config = ConfigDict(frozen=True)

    version: str = "1.2"
    completion_threshold: float = 100
    mastery_score: float | None = None
    allow_retakes: bool = True
    show_feedback: bool = True


class PackageRef(BaseModel):
    """Reference to a package to process.

    Attributes:
        source_path: Path or URL of the archive/descriptor; the cache key
        name: Display name (derived from the path when omitted)
        files: Already-materialized file listing; skips the FileLister
    """

    model_config = ConfigDict(frozen=True)

    source_path: str
    name: str | None = None
    files: list[FileEntry] | None = None


class ProcessedPackage(BaseModel):
    """Classified package record stored in the package cache."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    source_path: str
    family: str | None = None
    template_type: TemplateId
    confidence: float = Field(ge=0, le=100)
    descriptor: Descriptor
    configuration: TemplateConfiguration
    status: PackageStatus = PackageStatus.PROCESSED
    processed_at: datetime


class PackageResult(BaseModel):
    """Per-item outcome of a batch run. Never raises; errors are captured."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    success: bool
    package: ProcessedPackage | None = None
    error: str | None = None


class BatchReport(BaseModel):
    """Results of process_many, in input order."""

    model_config = ConfigDict(frozen=True)

    results: list[PackageResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[ProcessedPackage]:
        return [r.package for r in self.results if r.success and r.package is not None]

    @property
    def failed(self) -> list[PackageResult]:
        return [r for r in self.results if not r.success]
