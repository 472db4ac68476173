"""
Chroma keying: make pixels matching a target color transparent, either
everywhere in the image or only where they connect to seed points.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .buffer import PixelBuffer, ColorLike, InvalidParameterError, to_rgba


logger = logging.getLogger(__name__)

Seed = Tuple[int, int]

MAGENTA = (1.0, 0.0, 1.0)

# 4-connectivity: right, left, down, up
_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class KeyMode(Enum):
    """How matching pixels are selected for removal."""
    GLOBAL = "global"
    FLOOD_FILL = "flood_fill"

    @classmethod
    def parse(cls, value) -> "KeyMode":
        """Resolve a KeyMode from itself or a name such as ``flood-fill``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown key mode '{value}'. Valid modes: {valid}")


def corner_seeds(width: int, height: int, all_corners: bool = True) -> List[Seed]:
    """
    Seed points at the buffer corners.

    Args:
        width: Buffer width
        height: Buffer height
        all_corners: Use all four corners; otherwise only the top-left one

    Returns:
        Seeds ordered top-left, top-right, bottom-left, bottom-right
    """
    if not all_corners:
        return [(0, 0)]
    return [(0, 0), (width - 1, 0), (0, height - 1), (width - 1, height - 1)]


def color_match_mask(pixels: np.ndarray, target_color: ColorLike, tolerance: float) -> np.ndarray:
    """Boolean mask of pixels within ``tolerance`` RGB distance of the target (alpha ignored)."""
    target = to_rgba(target_color)[:3]
    diff = pixels[..., :3] - target
    distance = np.sqrt(np.sum(diff * diff, axis=-1))
    return distance <= tolerance


def _flood_from(seed: Seed, matches: np.ndarray, visited: np.ndarray, out: np.ndarray) -> int:
    width = matches.shape[1]
    height = matches.shape[0]
    x, y = seed

    if not (0 <= x < width and 0 <= y < height):
        return 0
    if visited[y, x] or not matches[y, x]:
        return 0

    queue = deque([(x, y)])
    visited[y, x] = True
    keyed = 0

    while queue:
        cx, cy = queue.popleft()
        out[cy, cx, 3] = 0.0
        keyed += 1

        for dx, dy in _NEIGHBOURS:
            nx, ny = cx + dx, cy + dy
            if 0 <= nx < width and 0 <= ny < height and not visited[ny, nx]:
                if matches[ny, nx]:
                    visited[ny, nx] = True
                    queue.append((nx, ny))

    return keyed


def key_out(source: PixelBuffer,
            target_color: ColorLike,
            tolerance: float,
            mode: KeyMode = KeyMode.FLOOD_FILL,
            seeds: Sequence[Seed] = ()) -> PixelBuffer:
    """
    Set alpha to 0 for pixels matching ``target_color``.

    In GLOBAL mode every matching pixel is keyed. In FLOOD_FILL mode only
    matching pixels 4-connected to one of the seeds through other matching
    pixels are keyed, so enclosed areas of the same color are preserved.
    RGB channels of keyed pixels are left as they were.

    Args:
        source: Buffer to key
        target_color: RGB(A) color to remove; alpha is ignored for matching
        tolerance: Maximum Euclidean RGB distance counted as a match
        mode: GLOBAL or FLOOD_FILL
        seeds: (x, y) start points for FLOOD_FILL. Out-of-bounds or
            non-matching seeds are skipped.

    Returns:
        New buffer with keyed pixels transparent

    Raises:
        InvalidParameterError: If tolerance is negative
    """
    if tolerance < 0:
        raise InvalidParameterError(f"Key tolerance must be non-negative, got {tolerance}")

    out = source.copy_pixels()
    matches = color_match_mask(out, target_color, tolerance)

    if mode is KeyMode.GLOBAL:
        out[matches, 3] = 0.0
        keyed = int(np.count_nonzero(matches))
    else:
        visited = np.zeros(matches.shape, dtype=bool)
        keyed = 0
        for seed in seeds:
            keyed += _flood_from(seed, matches, visited, out)

    logger.debug(f"Keyed {keyed} pixels ({mode.value}) in {source.width}x{source.height} buffer")
    return PixelBuffer(out)


@dataclass
class KeyingConfig:
    """Configuration for chroma keying."""
    target_color: Tuple[float, ...] = MAGENTA
    tolerance: float = 0.1
    mode: KeyMode = KeyMode.FLOOD_FILL
    seeds: Optional[List[Seed]] = None  # None means the buffer corners
    all_corners: bool = True


class FloodFillKeyer:
    """Applies a KeyingConfig to buffers."""

    def __init__(self, config: Optional[KeyingConfig] = None):
        self.config = config or KeyingConfig()

    def resolve_seeds(self, buffer: PixelBuffer) -> List[Seed]:
        """Seeds to use for ``buffer``: configured ones, or its corners."""
        if self.config.seeds is not None:
            return list(self.config.seeds)
        return corner_seeds(buffer.width, buffer.height, self.config.all_corners)

    def key_out(self, source: PixelBuffer) -> PixelBuffer:
        seeds = self.resolve_seeds(source) if self.config.mode is KeyMode.FLOOD_FILL else []
        return key_out(source, self.config.target_color, self.config.tolerance,
                       self.config.mode, seeds)
