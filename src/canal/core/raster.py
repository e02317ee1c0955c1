"""
Raster Types - Pixel buffers and reported dimensions.

This module defines the data that flows along graph edges:
- Raster: Decoded RGBA pixel buffer backed by a numpy array
- Dims: The width/height a node reports to its consumers

A node's Dims are not always the pixel size of its Raster. Transform
reports its scaled size while drawing onto a larger working surface,
and Merge/Blur/... inherit the Dims of their parent.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageOps, UnidentifiedImageError

from canal.core.errors import DecodeError, SurfaceError

# Single-channel modes holding more than 8 bits per sample
HIGH_BIT_DEPTH_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


@dataclass(frozen=True)
class Dims:
    """Reported width/height of a node output (may be fractional)."""
    width: float
    height: float

    @classmethod
    def of(cls, raster: Raster) -> Dims:
        """Natural pixel size of a raster."""
        return cls(float(raster.width), float(raster.height))

    @property
    def pixel_size(self) -> tuple[int, int]:
        """Size truncated to whole pixels, as a canvas would allocate it."""
        return (int(self.width), int(self.height))


@dataclass(eq=False)
class Raster:
    """
    Decoded image flowing through the graph.

    Pixels are stored in HWC format, always 4 channels (RGBA, straight
    alpha), float32 in range [0, 1]. Rasters compare by identity: a node
    that passes its input through hands downstream the very same object.

    Attributes:
        pixels: numpy array of shape (H, W, 4) with float32 values [0, 1]
        source_name: Optional file name the raster was decoded from
    """
    pixels: NDArray[np.float32]
    source_name: str | None = None

    @classmethod
    def from_numpy(cls, array: NDArray, source_name: str | None = None) -> Raster:
        """
        Create a Raster from a numpy array.

        Handles:
        - uint8 [0, 255] -> float32 [0, 1]
        - HW (grayscale) -> HWC
        - RGB -> RGBA with an opaque alpha channel
        """
        arr = np.asarray(array)
        if arr.dtype == np.uint8:
            arr = arr.astype(np.float32) / 255.0
        else:
            arr = arr.astype(np.float32)

        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3:
            raise ValueError(f"Expected HW or HWC array, got shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.ones(arr.shape[:2] + (1,), dtype=np.float32)
            arr = np.concatenate([arr, alpha], axis=-1)
        elif arr.shape[2] != 4:
            raise ValueError(f"Expected 3 or 4 channels, got {arr.shape[2]}")

        return cls(pixels=np.ascontiguousarray(arr), source_name=source_name)

    @classmethod
    def from_pil(cls, image: Image.Image, source_name: str | None = None) -> Raster:
        """Create a Raster from a PIL Image (any mode)."""
        if not isinstance(image, Image.Image):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        if image.mode in HIGH_BIT_DEPTH_MODES:
            # Rescale to [0, 1] rather than clipping to 8 bits
            gray = np.asarray(image, dtype=np.float32) / 65535.0
            return cls.from_numpy(np.clip(gray, 0.0, 1.0), source_name)
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        arr = np.asarray(image, dtype=np.float32) / 255.0
        return cls(pixels=arr, source_name=source_name)

    @classmethod
    def decode(cls, source: RasterSource, name: str | None = None) -> Raster:
        """
        Decode a source reference into a Raster.

        Args:
            source: Encoded bytes, a file path, a PIL Image or a Raster
            name: Optional display name recorded on the raster

        Raises:
            DecodeError: If the source cannot be read as an image
        """
        if isinstance(source, Raster):
            return source
        if isinstance(source, Image.Image):
            return cls.from_pil(source, name)

        try:
            if isinstance(source, (bytes, bytearray, memoryview)):
                with Image.open(io.BytesIO(bytes(source))) as image:
                    image.load()
                    return cls.from_pil(ImageOps.exif_transpose(image), name)
            if isinstance(source, (str, Path)):
                path = Path(source)
                with Image.open(path) as image:
                    image.load()
                    return cls.from_pil(ImageOps.exif_transpose(image), name or path.name)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            raise DecodeError(f"Cannot decode image {name or source!r}: {e}") from e

        raise DecodeError(f"Unsupported image source: {type(source).__name__}")

    @classmethod
    def transparent(cls, width: int, height: int) -> Raster:
        """Create a fully transparent surface of the given size."""
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Invalid surface size {width}x{height}")
        return cls(pixels=np.zeros((height, width, 4), dtype=np.float32))

    @property
    def width(self) -> int:
        """Raster width in pixels."""
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        """Raster height in pixels."""
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """Raster size as (width, height)."""
        return (self.width, self.height)

    def to_numpy(self, dtype: np.dtype = np.float32) -> NDArray:
        """Convert to a numpy array in HWC format."""
        if dtype == np.uint8:
            return (self.pixels * 255.0 + 0.5).clip(0, 255).astype(np.uint8)
        return self.pixels.astype(dtype)

    def to_pil(self) -> Image.Image:
        """Convert to an RGBA PIL Image."""
        return Image.fromarray(self.to_numpy(np.uint8))

    def copy(self) -> Raster:
        return Raster(pixels=self.pixels.copy(), source_name=self.source_name)


# Anything a File effect may reference
RasterSource: TypeAlias = bytes | str | Path | Image.Image | Raster
