"""
Engine Settings - Configuration shared by evaluation, export and the CLI.

Settings are plain data handed to the objects that need them; they can
be round-tripped through a dict and loaded from a JSON file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class EngineSettings:
    """
    Engine-wide settings.

    These settings affect evaluation and export for a whole graph.
    """
    # Export settings
    default_export_format: str = "png"
    default_export_quality: float = 0.92
    export_directory: Path | None = None

    # Text rendering
    font_family: str = "DejaVuSans"
    line_height_factor: float = 1.2

    # Evaluation
    blur_quality: str = "high"  # Used when a blur effect leaves quality unset
    run_in_executor: bool = True  # Off-load pixel work from the event loop

    # Logging
    log_level: str = "INFO"

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "default_export_format": self.default_export_format,
            "default_export_quality": self.default_export_quality,
            "export_directory": str(self.export_directory) if self.export_directory else None,
            "font_family": self.font_family,
            "line_height_factor": self.line_height_factor,
            "blur_quality": self.blur_quality,
            "run_in_executor": self.run_in_executor,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineSettings:
        """Create settings from dictionary."""
        return cls(
            default_export_format=data.get("default_export_format", "png"),
            default_export_quality=data.get("default_export_quality", 0.92),
            export_directory=Path(data["export_directory"]) if data.get("export_directory") else None,
            font_family=data.get("font_family", "DejaVuSans"),
            line_height_factor=data.get("line_height_factor", 1.2),
            blur_quality=data.get("blur_quality", "high"),
            run_in_executor=data.get("run_in_executor", True),
            log_level=data.get("log_level", "INFO"),
        )

    @classmethod
    def load(cls, path: Path) -> EngineSettings:
        """
        Load settings from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a JSON object
        """
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Invalid settings format: {path}")

        return cls.from_dict(data)

    def save(self, path: Path) -> Path:
        """Write settings to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path
