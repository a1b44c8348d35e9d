"""Configuration models and loaders."""

from lessonprobe.core.config.loader import detect_format, load_app_config, load_config
from lessonprobe.core.config.models import AppConfig, DetectionConfig, HttpConfig, LoggingConfig

__all__ = [
    "AppConfig",
    "DetectionConfig",
    "HttpConfig",
    "LoggingConfig",
    "detect_format",
    "load_app_config",
    "load_config",
]
