from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    """
    Ensure `src/` is on sys.path so tests can import `canal`
    without requiring an editable install.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"
    sys.path.insert(0, str(src_root))


@pytest.fixture
def make_raster():
    """Build a solid-color raster: make_raster(width, height, rgba)."""
    from canal.core.raster import Raster

    def _make(width: int, height: int, rgba=(1.0, 0.0, 0.0, 1.0)) -> Raster:
        pixels = np.empty((height, width, 4), dtype=np.float32)
        pixels[...] = rgba
        return Raster(pixels=pixels)

    return _make


@pytest.fixture
def png_bytes():
    """Encode a solid-color RGBA image as PNG: png_bytes(width, height, rgba8)."""
    import io

    from PIL import Image

    def _encode(width: int, height: int, rgba=(255, 0, 0, 255)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGBA", (width, height), rgba).save(buffer, format="PNG")
        return buffer.getvalue()

    return _encode
