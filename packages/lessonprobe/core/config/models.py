"""Configuration models for lessonprobe."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DetectionConfig(BaseModel):
    """Classification pipeline settings."""

    min_confidence: float = Field(
        default=60, ge=0, le=100, description="Confidence gate for recommended templates"
    )

    max_descriptor_depth: int = Field(
        default=64, ge=1, description="Deepest organization item level kept when parsing"
    )

    archive_extensions: list[str] = Field(
        default_factory=lambda: [".zip", ".story"],
        description="Extensions listed through the FileLister and run through detection rules",
    )

    descriptor_extensions: list[str] = Field(
        default_factory=lambda: [".xml"],
        description="Extensions parsed directly as manifests",
    )

    content_sample_bytes: int = Field(
        default=4096, gt=0, description="Bytes of text sampled per file for keyword rules"
    )

    @field_validator("archive_extensions", "descriptor_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]


class HttpConfig(BaseModel):
    """Descriptor fetch-by-URL settings."""

    timeout_seconds: float = Field(default=30.0, gt=0, description="Request timeout")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = Field(default=False, description="Emit JSON log lines")


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("lessonprobe.yaml")
