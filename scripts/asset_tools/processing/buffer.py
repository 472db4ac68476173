"""
Pixel buffer data model shared by every processing stage.
Defines the RGBA buffer, integer regions, and the processing error taxonomy.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np


Color = Tuple[float, float, float, float]
ColorLike = Union[Sequence[float], np.ndarray]


class ProcessingError(Exception):
    """Base exception for pixel processing errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRegionError(ProcessingError):
    """Raised when a crop rectangle cannot be clamped to a non-empty area."""


class InvalidTargetSizeError(ProcessingError):
    """Raised when a requested output width or height is not positive."""


class InvalidCanvasSizeError(InvalidTargetSizeError):
    """Raised when a canvas target width or height is not positive."""


class EmptyGradientError(ProcessingError):
    """Raised when a gradient has no color stops."""

    def __init__(self, message: str = "Gradient must contain at least one color stop"):
        super().__init__(message)


class DimensionMismatchError(ProcessingError):
    """Raised when buffer data does not match its declared dimensions."""


class InvalidParameterError(ProcessingError):
    """Raised for out-of-range stage parameters (tolerance, sample counts)."""


def to_rgba(color: ColorLike) -> np.ndarray:
    """
    Normalize an RGB or RGBA color to a float RGBA array.

    Args:
        color: Three or four channel values in [0, 1]. Alpha defaults to 1.

    Returns:
        Array of shape (4,)
    """
    values = np.array(color, dtype=np.float64).reshape(-1)
    if values.size == 3:
        values = np.append(values, 1.0)
    if values.size != 4:
        raise InvalidParameterError(f"Color must have 3 or 4 channels, got {values.size}")
    return values


class PixelBuffer:
    """
    Immutable rectangular grid of RGBA samples.

    Samples are stored row-major with the origin at the top-left corner,
    as a float array of shape (height, width, 4) with channels in [0, 1].
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray):
        """
        Wrap a copy of an RGBA array.

        Args:
            pixels: Array of shape (height, width, 4)

        Raises:
            DimensionMismatchError: If the array shape is not a non-empty RGBA grid
                or holds non-finite values
        """
        array = np.array(pixels, dtype=np.float64, copy=True)

        if array.ndim != 3 or array.shape[2] != 4:
            raise DimensionMismatchError(
                f"Pixel array must have shape (height, width, 4), got {array.shape}"
            )

        height, width = array.shape[:2]
        if width < 1 or height < 1:
            raise DimensionMismatchError(f"Buffer must be at least 1x1, got {width}x{height}")

        if not np.all(np.isfinite(array)):
            raise DimensionMismatchError("Buffer contains non-finite channel values")

        array.setflags(write=False)
        self._pixels = array

    @classmethod
    def from_samples(cls, samples: Iterable[ColorLike], width: int, height: int) -> "PixelBuffer":
        """
        Build a buffer from a flat row-major sequence of RGBA samples.

        Raises:
            DimensionMismatchError: If the sample count is not width * height
        """
        if width < 1 or height < 1:
            raise DimensionMismatchError(f"Buffer must be at least 1x1, got {width}x{height}")

        flat = np.asarray(list(samples), dtype=np.float64)
        if flat.ndim != 2 or flat.shape[1] != 4:
            raise DimensionMismatchError(f"Samples must be RGBA 4-tuples, got shape {flat.shape}")
        if flat.shape[0] != width * height:
            raise DimensionMismatchError(
                f"Expected {width * height} samples for {width}x{height}, got {flat.shape[0]}"
            )

        return cls(flat.reshape(height, width, 4))

    @classmethod
    def filled(cls, width: int, height: int, color: ColorLike) -> "PixelBuffer":
        """Create a buffer with every sample set to ``color``."""
        if width < 1 or height < 1:
            raise DimensionMismatchError(f"Buffer must be at least 1x1, got {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.float64)
        pixels[:, :] = to_rgba(color)
        return cls(pixels)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        """Buffer size as (width, height)."""
        return (self.width, self.height)

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the (height, width, 4) sample array."""
        return self._pixels

    def copy_pixels(self) -> np.ndarray:
        """Return a private, writable copy of the sample array."""
        return self._pixels.copy()

    def get_pixel(self, x: int, y: int) -> Color:
        """Return the RGBA sample at column ``x``, row ``y``."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        r, g, b, a = self._pixels[y, x]
        return (float(r), float(g), float(b), float(a))

    def clamped(self) -> "PixelBuffer":
        """Return a copy with every channel clipped to [0, 1], ready for encoding."""
        return PixelBuffer(np.clip(self._pixels, 0.0, 1.0))

    def to_samples(self) -> List[Color]:
        """Flatten to a row-major list of RGBA tuples."""
        return [tuple(float(c) for c in sample) for sample in self._pixels.reshape(-1, 4)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self._pixels, other._pixels))

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


@dataclass(frozen=True)
class Rect:
    """Integer pixel region with top-left origin."""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def full(cls, buffer: PixelBuffer) -> "Rect":
        """Region covering the whole buffer."""
        return cls(0, 0, buffer.width, buffer.height)

    @classmethod
    def from_bottom_left(cls, x: int, y: int, width: int, height: int,
                         source_height: int) -> "Rect":
        """
        Convert a region whose y axis starts at the bottom edge.

        Args:
            x: Left edge
            y: Bottom edge, measured upward from the bottom of the source
            width: Region width
            height: Region height
            source_height: Height of the source buffer

        Returns:
            Equivalent region with top-left origin
        """
        return cls(x, source_height - y - height, width, height)

    def clamp_to(self, source_width: int, source_height: int) -> "Rect":
        """
        Clamp the region so it lies inside a source of the given size.

        The origin is pulled inside the source first, then the extent is
        limited to what remains, never below one pixel.

        Raises:
            InvalidRegionError: If the source has no pixels
        """
        if source_width < 1 or source_height < 1:
            raise InvalidRegionError(
                f"Cannot clamp region to empty source {source_width}x{source_height}"
            )

        x = min(max(self.x, 0), source_width - 1)
        y = min(max(self.y, 0), source_height - 1)
        width = min(max(self.width, 1), source_width - x)
        height = min(max(self.height, 1), source_height - y)
        return Rect(x, y, width, height)

    def compose(self, inner: "Rect", source_width: int, source_height: int) -> "Rect":
        """
        Express ``inner``, given in this region's coordinates, in source coordinates.

        Both regions are clamped the way consecutive crops clamp them, so
        cropping by the result equals cropping by ``self`` and then by ``inner``.

        Args:
            inner: Region relative to the top-left of this region
            source_width: Width of the buffer this region is applied to
            source_height: Height of the buffer this region is applied to

        Raises:
            InvalidRegionError: If the source has no pixels
        """
        outer = self.clamp_to(source_width, source_height)
        local = inner.clamp_to(outer.width, outer.height)
        return Rect(outer.x + local.x, outer.y + local.y, local.width, local.height)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)
