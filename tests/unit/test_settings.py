"""
Tests for engine settings.
"""

import json
from pathlib import Path

import pytest

from canal.core.settings import EngineSettings


class TestEngineSettings:
    """Tests for EngineSettings."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.default_export_format == "png"
        assert settings.default_export_quality == 0.92
        assert settings.export_directory is None
        assert settings.line_height_factor == 1.2
        assert settings.blur_quality == "high"
        assert settings.run_in_executor is True

    def test_dict_round_trip(self):
        settings = EngineSettings(
            default_export_format="webp",
            export_directory=Path("/tmp/exports"),
            log_level="DEBUG",
        )

        restored = EngineSettings.from_dict(settings.to_dict())

        assert restored == settings

    def test_from_partial_dict(self):
        settings = EngineSettings.from_dict({"font_family": "Arial"})
        assert settings.font_family == "Arial"
        assert settings.default_export_format == "png"

    def test_save_and_load(self, tmp_path):
        path = EngineSettings(blur_quality="low").save(tmp_path / "cfg" / "settings.json")

        assert EngineSettings.load(path).blur_quality == "low"

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EngineSettings.load(tmp_path / "missing.json")

    def test_load_not_an_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps([1, 2, 3]))

        with pytest.raises(ValueError):
            EngineSettings.load(path)
