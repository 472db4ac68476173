"""
Brightness-driven palette quantization.

Each pixel's perceptual brightness selects one of N colors sampled evenly
from a piecewise-linear gradient. Quantization changes color only; the
source alpha is always kept.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np

from .buffer import (
    PixelBuffer, ColorLike, EmptyGradientError, InvalidParameterError, to_rgba
)


logger = logging.getLogger(__name__)

# Dark blue-black, purple, red, orange-yellow, light green
DEFAULT_GRADIENT = [
    (0.08, 0.08, 0.16, 1.0),
    (0.33, 0.20, 0.53, 1.0),
    (0.94, 0.20, 0.20, 1.0),
    (1.00, 0.73, 0.20, 1.0),
    (0.60, 1.00, 0.47, 1.0),
]

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def gradient_stops(gradient: Sequence[ColorLike]) -> np.ndarray:
    """
    Normalize gradient stops to an (m, 4) RGBA array.

    Raises:
        EmptyGradientError: If there are no stops
    """
    if len(gradient) == 0:
        raise EmptyGradientError()
    return np.stack([to_rgba(stop) for stop in gradient])


def evaluate_gradient(gradient: Sequence[ColorLike],
                      t: Union[float, np.ndarray]) -> np.ndarray:
    """
    Evaluate a piecewise-linear gradient.

    The stops are spaced evenly over [0, 1] in the order given. A single
    stop yields that color for every ``t``.

    Args:
        gradient: Ordered color stops
        t: Query position(s) in [0, 1]

    Returns:
        RGBA array of shape t.shape + (4,)

    Raises:
        EmptyGradientError: If there are no stops
    """
    stops = gradient_stops(gradient)
    t = np.asarray(t, dtype=np.float64)

    if len(stops) == 1:
        return np.broadcast_to(stops[0], t.shape + (4,)).copy()

    segment_length = 1.0 / (len(stops) - 1)
    segment = np.clip(np.floor(t / segment_length), 0, len(stops) - 2).astype(np.intp)
    local_t = np.clip((t - segment * segment_length) / segment_length, 0.0, 1.0)[..., None]

    start = stops[segment]
    end = stops[segment + 1]
    return start + (end - start) * local_t


def sample_palette(gradient: Sequence[ColorLike], sample_count: int) -> np.ndarray:
    """
    Sample ``sample_count`` colors evenly across a gradient.

    Sample ``i`` is taken at ``t = i / (sample_count - 1)``; a single sample
    is taken at ``t = 0``.

    Returns:
        Array of shape (sample_count, 4)

    Raises:
        InvalidParameterError: If sample_count is below 1
        EmptyGradientError: If there are no stops
    """
    if sample_count < 1:
        raise InvalidParameterError(f"Sample count must be at least 1, got {sample_count}")

    if sample_count == 1:
        positions = np.zeros(1)
    else:
        positions = np.arange(sample_count) / (sample_count - 1)
    return evaluate_gradient(gradient, positions)


def luma(pixels: np.ndarray) -> np.ndarray:
    """Perceptual brightness 0.299 R + 0.587 G + 0.114 B of each pixel."""
    return pixels[..., :3] @ LUMA_WEIGHTS


def palette_indices(pixels: np.ndarray, sample_count: int, brightness_offset: float = 0.0) -> np.ndarray:
    """Map each pixel to a palette index through its offset, clamped brightness."""
    brightness = np.clip(luma(pixels) + brightness_offset, 0.0, 1.0)
    index = np.floor(brightness * (sample_count - 1)).astype(np.intp)
    return np.clip(index, 0, sample_count - 1)


def quantize(source: PixelBuffer,
             gradient: Sequence[ColorLike],
             sample_count: int,
             brightness_offset: float = 0.0) -> PixelBuffer:
    """
    Posterize a buffer to colors sampled from a gradient.

    Two pixels with equal brightness always map to the same color whatever
    their hue. Output alpha equals source alpha.

    Args:
        source: Buffer to quantize
        gradient: Ordered color stops
        sample_count: Number of discrete colors to sample
        brightness_offset: Added to each pixel's brightness before clamping to [0, 1]

    Returns:
        New quantized buffer

    Raises:
        InvalidParameterError: If sample_count is below 1
        EmptyGradientError: If the gradient has no stops
    """
    palette = sample_palette(gradient, sample_count)
    pixels = source.pixels

    out = np.empty_like(pixels)
    out[..., :3] = palette[palette_indices(pixels, sample_count, brightness_offset), :3]
    out[..., 3] = pixels[..., 3]

    return PixelBuffer(out)


def extract_palette(source: PixelBuffer, color_count: int = 5) -> List[tuple]:
    """
    Pick representative colors from an image, ordered dark to light.

    All pixels are sorted by brightness and ``color_count`` of them are
    taken at evenly spaced ranks.

    Raises:
        InvalidParameterError: If color_count is below 1
    """
    if color_count < 1:
        raise InvalidParameterError(f"Palette size must be at least 1, got {color_count}")

    samples = source.pixels.reshape(-1, 4)
    order = np.argsort(luma(samples), kind="stable")
    ranks = [int(np.floor(i * len(samples) / color_count)) for i in range(color_count)]

    return [tuple(float(c) for c in samples[order[rank]]) for rank in ranks]


@dataclass
class QuantizeConfig:
    """Configuration for palette quantization."""
    gradient: List[tuple] = field(default_factory=lambda: list(DEFAULT_GRADIENT))
    sample_count: int = 8
    brightness_offset: float = 0.0


class PaletteQuantizer:
    """Applies a QuantizeConfig to buffers."""

    def __init__(self, config: Optional[QuantizeConfig] = None):
        self.config = config or QuantizeConfig()

    def palette(self) -> np.ndarray:
        """The discrete colors this quantizer maps onto."""
        return sample_palette(self.config.gradient, self.config.sample_count)

    def quantize(self, source: PixelBuffer) -> PixelBuffer:
        logger.debug(
            f"Quantizing {source.width}x{source.height} buffer to {self.config.sample_count} colors "
            f"(offset {self.config.brightness_offset:+.2f})"
        )
        return quantize(source, self.config.gradient, self.config.sample_count,
                        self.config.brightness_offset)
