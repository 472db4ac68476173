"""
Nearest-neighbor resolution reduction for the pixel-art look.
"""

from typing import Tuple

import numpy as np

from .buffer import PixelBuffer, InvalidTargetSizeError


def pixelated_size(source_width: int, source_height: int, target_width: int) -> Tuple[int, int]:
    """
    Compute the output size for a target width, keeping the aspect ratio.

    Raises:
        InvalidTargetSizeError: If target_width is not positive
    """
    if target_width <= 0:
        raise InvalidTargetSizeError(f"Pixelation target width must be positive, got {target_width}")

    target_height = int(round(target_width * source_height / source_width))
    return target_width, max(1, target_height)


def pixelate(source: PixelBuffer, target_width: int) -> PixelBuffer:
    """
    Downsample a buffer by direct re-indexing (no blending).

    Each destination pixel copies the source sample at
    ``floor(x / target_width * source.width)``,
    ``floor(y / target_height * source.height)``, so hard pixel edges survive.

    Args:
        source: Buffer to pixelate
        target_width: Output width in pixels; height follows the aspect ratio

    Returns:
        New buffer of size target_width x round(target_width * h / w)

    Raises:
        InvalidTargetSizeError: If target_width is not positive
    """
    width, height = pixelated_size(source.width, source.height, target_width)

    # Integer form of floor(x / width * source.width), exact for every x
    src_x = (np.arange(width, dtype=np.intp) * source.width) // width
    src_y = (np.arange(height, dtype=np.intp) * source.height) // height
    src_x = np.clip(src_x, 0, source.width - 1)
    src_y = np.clip(src_y, 0, source.height - 1)

    return PixelBuffer(source.pixels[src_y[:, None], src_x[None, :]])
