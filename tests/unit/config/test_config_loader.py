"""Tests for configuration models and loading."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError
import pytest

from lessonprobe.core.config import (
    AppConfig,
    DetectionConfig,
    detect_format,
    load_app_config,
    load_config,
)
from lessonprobe.core.config.loader import LOG_LEVEL_ENV


class TestDefaults:
    """Default configuration values."""

    def test_detection_defaults(self):
        config = DetectionConfig()

        assert config.min_confidence == 60
        assert config.max_descriptor_depth == 64
        assert config.archive_extensions == [".zip", ".story"]
        assert config.descriptor_extensions == [".xml"]
        assert config.content_sample_bytes == 4096

    def test_app_defaults(self):
        config = AppConfig()

        assert config.http.timeout_seconds == 30
        assert config.logging.level == "INFO"
        assert config.logging.structured is False

    def test_extensions_are_normalized(self):
        config = DetectionConfig(archive_extensions=["ZIP", ".Story", "scorm"])

        assert config.archive_extensions == [".zip", ".story", ".scorm"]

    def test_min_confidence_bounds(self):
        with pytest.raises(ValidationError):
            DetectionConfig(min_confidence=120)

    def test_log_level_is_validated(self):
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"logging": {"level": "LOUD"}})


class TestDetectFormat:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [("app.json", "json"), ("app.yaml", "yaml"), ("app.YML", "yaml")],
    )
    def test_known_formats(self, name: str, expected: str):
        assert detect_format(name) == expected

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unsupported config format"):
            detect_format("app.toml")


class TestLoadConfig:
    def test_load_yaml(self, tmp_path: Path):
        path = tmp_path / "lessonprobe.yaml"
        path.write_text("detection:\n  min_confidence: 75\n", encoding="utf-8")

        assert load_config(path) == {"detection": {"min_confidence": 75}}

    def test_load_json(self, tmp_path: Path):
        path = tmp_path / "lessonprobe.json"
        path.write_text(json.dumps({"http": {"timeout_seconds": 5}}), encoding="utf-8")

        assert load_config(path) == {"http": {"timeout_seconds": 5}}

    def test_empty_yaml_is_empty_mapping(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == {}

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("detection: [unclosed", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_root(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")


class TestLoadAppConfig:
    def test_values_from_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        path = tmp_path / "lessonprobe.yaml"
        path.write_text(
            "detection:\n"
            "  min_confidence: 75\n"
            "  archive_extensions: [zip, story, scorm]\n"
            "logging:\n"
            "  level: DEBUG\n"
            "unknown_section: ignored\n",
            encoding="utf-8",
        )

        config = load_app_config(path)

        assert config.detection.min_confidence == 75
        assert config.detection.archive_extensions == [".zip", ".story", ".scorm"]
        assert config.detection.max_descriptor_depth == 64
        assert config.logging.level == "DEBUG"

    def test_missing_file_gives_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)

        assert load_app_config(tmp_path / "nope.yaml") == AppConfig()

    def test_env_overrides_log_level(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "warning")

        config = load_app_config(tmp_path / "nope.yaml")

        assert config.logging.level == "WARNING"

    def test_invalid_values_raise(self, tmp_path: Path):
        path = tmp_path / "lessonprobe.json"
        path.write_text(json.dumps({"detection": {"max_descriptor_depth": 0}}), encoding="utf-8")

        with pytest.raises(ValidationError):
            load_app_config(path)
