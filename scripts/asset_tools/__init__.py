"""
Asset Tools for the resource-management game toolkit

Pixel buffer processing behind the image authoring tools: cropping, pixel-art
conversion, background keying, color resampling and canvas normalization for
player, resource, station and goal artwork.
"""

__version__ = "0.1.0"
__author__ = "Game Assemblies Development Team"

from .config import PipelineConfig
from .processing.buffer import PixelBuffer, Rect, ProcessingError
from .pipeline import AssetPipeline, AssetClass, Style, PipelineOptions, PipelineResult

__all__ = [
    "PipelineConfig",
    "PixelBuffer",
    "Rect",
    "ProcessingError",
    "AssetPipeline",
    "AssetClass",
    "Style",
    "PipelineOptions",
    "PipelineResult",
]
