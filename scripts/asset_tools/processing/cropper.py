"""
Rectangular cropping of pixel buffers.
"""

from .buffer import PixelBuffer, Rect


def crop(source: PixelBuffer, region: Rect) -> PixelBuffer:
    """
    Extract a sub-rectangle from a buffer.

    Out-of-range regions are clamped to the source bounds instead of failing,
    so the result always holds at least one pixel.

    Args:
        source: Buffer to crop
        region: Region in source pixels, origin top-left

    Returns:
        New buffer of exactly the clamped region's size

    Raises:
        InvalidRegionError: If the source has a zero dimension
    """
    clamped = region.clamp_to(source.width, source.height)
    window = source.pixels[clamped.y:clamped.y + clamped.height,
                           clamped.x:clamped.x + clamped.width]
    return PixelBuffer(window)
