"""
Aspect-preserving resize onto a fixed-size, opaque canvas.
"""

from typing import Tuple

import numpy as np

from .buffer import (
    PixelBuffer, ColorLike, InvalidCanvasSizeError, InvalidTargetSizeError, to_rgba
)


WHITE = (1.0, 1.0, 1.0)


def _lerp(a: np.ndarray, b: np.ndarray, t: np.ndarray) -> np.ndarray:
    return a + (b - a) * t


def bilinear_resize(source: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """
    Resize with bilinear interpolation over all four channels.

    Destination pixel (x, y) samples the source at
    ``(x / width * source.width, y / height * source.height)`` and blends the
    four surrounding samples by the fractional offsets. Values are blended as
    stored, without any gamma conversion.

    Raises:
        InvalidTargetSizeError: If width or height is not positive
    """
    if width <= 0 or height <= 0:
        raise InvalidTargetSizeError(f"Resize target must be positive, got {width}x{height}")

    pixels = source.pixels

    # Integer part and fraction of x / width * source.width, computed exactly
    sx = np.arange(width, dtype=np.intp) * source.width
    sy = np.arange(height, dtype=np.intp) * source.height
    x1 = sx // width
    y1 = sy // height
    x2 = np.minimum(x1 + 1, source.width - 1)
    y2 = np.minimum(y1 + 1, source.height - 1)
    u = ((sx - x1 * width) / width)[None, :, None]
    v = ((sy - y1 * height) / height)[:, None, None]

    c11 = pixels[y1[:, None], x1[None, :]]
    c21 = pixels[y1[:, None], x2[None, :]]
    c12 = pixels[y2[:, None], x1[None, :]]
    c22 = pixels[y2[:, None], x2[None, :]]

    top = _lerp(c11, c21, u)
    bottom = _lerp(c12, c22, u)
    return PixelBuffer(_lerp(top, bottom, v))


def fitted_size(source_width: int, source_height: int,
                target_width: int, target_height: int) -> Tuple[int, int]:
    """Largest size with the source aspect ratio that fits inside the target."""
    scale = min(target_width / source_width, target_height / source_height)
    width = min(max(int(round(source_width * scale)), 1), target_width)
    height = min(max(int(round(source_height * scale)), 1), target_height)
    return width, height


def resize_to_canvas(source: PixelBuffer,
                     target_width: int,
                     target_height: int,
                     background: ColorLike = WHITE) -> PixelBuffer:
    """
    Scale a buffer to fit a canvas, center it, and pad with a background color.

    Partially transparent pixels are composited over the background, so
    every output pixel is fully opaque.

    Args:
        source: Buffer to place on the canvas
        target_width: Canvas width
        target_height: Canvas height
        background: RGB(A) padding color; its alpha is ignored

    Returns:
        Opaque buffer of exactly target_width x target_height

    Raises:
        InvalidCanvasSizeError: If target_width or target_height is not positive
    """
    if target_width <= 0 or target_height <= 0:
        raise InvalidCanvasSizeError(
            f"Canvas size must be positive, got {target_width}x{target_height}"
        )

    bg = to_rgba(background)
    bg[3] = 1.0

    scaled_width, scaled_height = fitted_size(source.width, source.height,
                                              target_width, target_height)
    scaled = bilinear_resize(source, scaled_width, scaled_height).copy_pixels()

    # Only pixels with alpha < 1 are blended, opaque ones are copied verbatim
    translucent = scaled[..., 3] < 1.0
    alpha = scaled[translucent][:, 3:4]
    scaled[translucent] = _lerp(bg, scaled[translucent], alpha)
    scaled[..., 3] = 1.0

    canvas = np.empty((target_height, target_width, 4), dtype=np.float64)
    canvas[:, :] = bg

    x_offset = (target_width - scaled_width) // 2
    y_offset = (target_height - scaled_height) // 2
    canvas[y_offset:y_offset + scaled_height, x_offset:x_offset + scaled_width] = scaled

    return PixelBuffer(canvas)
