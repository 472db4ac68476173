"""
Utility modules for image file conversion and color parsing.
"""

from .image import ImageUtils
from .color import parse_color, format_color, NAMED_COLORS

__all__ = [
    "ImageUtils",
    "parse_color",
    "format_color",
    "NAMED_COLORS",
]
