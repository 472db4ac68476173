"""
Image file utilities: decoding and encoding between Pillow images and pixel buffers.
"""

from pathlib import Path
from typing import Sequence, Tuple, Union
from PIL import Image
import numpy as np
import io

from ..processing.buffer import PixelBuffer, to_rgba
from ..processing.quantizer import evaluate_gradient


class ImageUtils:
    """Utility class for moving pixel data in and out of image files."""

    @staticmethod
    def load_image(data: Union[bytes, str, Path, Image.Image]) -> Image.Image:
        """
        Load image from various sources.

        Args:
            data: Image data as bytes, file path, or PIL Image

        Returns:
            PIL Image object

        Raises:
            ValueError: If data cannot be loaded as image
        """
        if isinstance(data, Image.Image):
            return data
        elif isinstance(data, bytes):
            try:
                return Image.open(io.BytesIO(data))
            except Exception as e:
                raise ValueError(f"Cannot load image from bytes: {e}")
        elif isinstance(data, (str, Path)):
            try:
                return Image.open(data)
            except Exception as e:
                raise ValueError(f"Cannot load image from path '{data}': {e}")
        else:
            raise ValueError(f"Unsupported image data type: {type(data)}")

    @staticmethod
    def save_image(image: Image.Image, path: Union[str, Path], format: str = 'PNG', **kwargs) -> None:
        """
        Save image to file, creating parent directories as needed.

        Args:
            image: Image to save
            path: Output file path
            format: Image format (PNG, WEBP)
            **kwargs: Additional save parameters
        """
        save_kwargs = {}
        if format.upper() == 'PNG':
            save_kwargs['compress_level'] = kwargs.pop('compress_level', 6)
        save_kwargs.update(kwargs)

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path, format=format, **save_kwargs)

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def to_buffer(image: Image.Image) -> PixelBuffer:
        """Convert an image to a pixel buffer with channels scaled to [0, 1]."""
        rgba = ImageUtils.ensure_rgba(image)
        return PixelBuffer(np.asarray(rgba, dtype=np.float64) / 255.0)

    @staticmethod
    def from_buffer(buffer: PixelBuffer) -> Image.Image:
        """Convert a pixel buffer to an 8-bit RGBA image, clamping channels first."""
        pixels = buffer.clamped().pixels
        array = np.round(pixels * 255.0).astype(np.uint8)
        return Image.fromarray(array)

    @staticmethod
    def load_buffer(data: Union[bytes, str, Path, Image.Image]) -> PixelBuffer:
        """Decode an image source straight into a pixel buffer."""
        return ImageUtils.to_buffer(ImageUtils.load_image(data))

    @staticmethod
    def save_buffer(buffer: PixelBuffer, path: Union[str, Path], compress_level: int = 6) -> None:
        """Encode a pixel buffer as PNG."""
        ImageUtils.save_image(ImageUtils.from_buffer(buffer), path, 'PNG',
                              compress_level=compress_level)

    @staticmethod
    def gradient_preview(gradient: Sequence, size: Tuple[int, int] = (256, 16)) -> Image.Image:
        """
        Render a gradient as a horizontal strip.

        Column x shows the gradient at t = x / (width - 1).

        Args:
            gradient: Ordered color stops
            size: Strip (width, height)

        Returns:
            RGBA preview image
        """
        width, height = size
        positions = np.arange(width) / max(width - 1, 1)
        row = evaluate_gradient(gradient, positions)
        pixels = np.broadcast_to(row, (height, width, 4))
        return ImageUtils.from_buffer(PixelBuffer(pixels))

    @staticmethod
    def palette_swatch(colors: Sequence, cell_size: int = 16) -> Image.Image:
        """
        Render discrete colors as a row of square cells.

        Args:
            colors: RGBA colors in [0, 1]
            cell_size: Edge length of each cell

        Returns:
            RGBA swatch image
        """
        colors = np.stack([to_rgba(c) for c in colors])
        row = np.repeat(colors, cell_size, axis=0)
        pixels = np.broadcast_to(row, (cell_size, row.shape[0], 4))
        return ImageUtils.from_buffer(PixelBuffer(pixels))
