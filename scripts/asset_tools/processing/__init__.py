"""
Pixel buffer transforms: cropping, pixelation, chroma keying, palette quantization and canvas resizing.
"""

from .buffer import (
    PixelBuffer,
    Rect,
    ProcessingError,
    InvalidRegionError,
    InvalidTargetSizeError,
    InvalidCanvasSizeError,
    EmptyGradientError,
    DimensionMismatchError,
    InvalidParameterError,
)
from .cropper import crop
from .pixelator import pixelate, pixelated_size
from .keyer import KeyMode, KeyingConfig, FloodFillKeyer, key_out, corner_seeds
from .quantizer import (
    DEFAULT_GRADIENT,
    QuantizeConfig,
    PaletteQuantizer,
    evaluate_gradient,
    sample_palette,
    quantize,
    extract_palette,
    luma,
)
from .canvas import bilinear_resize, resize_to_canvas, fitted_size

__all__ = [
    # Data model and errors
    "PixelBuffer",
    "Rect",
    "ProcessingError",
    "InvalidRegionError",
    "InvalidTargetSizeError",
    "InvalidCanvasSizeError",
    "EmptyGradientError",
    "DimensionMismatchError",
    "InvalidParameterError",

    # Stages
    "crop",
    "pixelate",
    "pixelated_size",
    "KeyMode",
    "KeyingConfig",
    "FloodFillKeyer",
    "key_out",
    "corner_seeds",
    "DEFAULT_GRADIENT",
    "QuantizeConfig",
    "PaletteQuantizer",
    "evaluate_gradient",
    "sample_palette",
    "quantize",
    "extract_palette",
    "luma",
    "bilinear_resize",
    "resize_to_canvas",
    "fitted_size",
]
