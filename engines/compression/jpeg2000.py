"""
JPEG2000 compression for EasyPDF images

Smaller than JPEG at the same visual quality, useful for large photos in
long documents. Selected with add_image(..., image_format='JPEG2000').

Requirements:
- Pillow with OpenJPEG support
- OpenJPEG library: brew install openjpeg (macOS) or apt-get install libopenjp2-7 (Linux)
"""

import io
from typing import Optional
from PIL import Image

from . import register_compressor
from utilities import Print


@register_compressor("jpeg2000")
class JPEG2000CompressorFactory:
    """Factory for creating JPEG2000 compressor instances."""

    @staticmethod
    def create(config: dict) -> "JPEG2000Compressor":
        return JPEG2000Compressor(config)


class JPEG2000Compressor:
    """
    JPEG2000 compression for embedded images.

    Attributes:
        quality_layers: List of quality values for progressive encoding
        quality_mode: Either 'rates' (compression ratio) or 'dB' (PSNR)
        irreversible: If True, use lossy DWT (better compression)
    """

    def __init__(self, config: dict):
        """
        Initialize JPEG2000 compressor with configuration.

        Args:
            config: Configuration dictionary with optional keys:
                - quality_layers: List[int] - Quality values (default: [20])
                - quality_mode: str - 'rates' or 'dB' (default: 'rates')
                - irreversible: bool - Use lossy transform (default: True)
        """
        self.quality_layers = config.get('quality_layers', [20])
        self.quality_mode = config.get('quality_mode', 'rates')
        self.irreversible = config.get('irreversible', True)

        self._verify_jpeg2000_support()

    def _verify_jpeg2000_support(self) -> None:
        """
        Verify that Pillow can encode JPEG2000.

        Raises:
            RuntimeError: If JPEG2000 encoding is not available
        """
        test_img = Image.new('RGB', (10, 10), color='white')
        buffer = io.BytesIO()
        try:
            test_img.save(buffer, format='JPEG2000')
        except (OSError, KeyError) as e:
            raise RuntimeError(
                f"JPEG2000 encoding not available: {e}\n"
                f"Install OpenJPEG library:\n"
                f"  macOS: brew install openjpeg\n"
                f"  Linux: apt-get install libopenjp2-7\n"
                f"Then reinstall Pillow: pip install --force-reinstall Pillow"
            )

        Print("DEBUG", "JPEG2000 encoding verified")

    def compress(self, image: Image.Image, quality: Optional[int] = None) -> bytes:
        """
        Compress image to JPEG2000 format.

        Args:
            image: PIL Image to compress (converted to RGB if needed)
            quality: Optional compression ratio override for 'rates' mode.
                    Higher values = smaller files = lower quality

        Returns:
            JPEG2000 codestream as bytes

        Raises:
            RuntimeError: If compression fails
        """
        if quality is None:
            quality = self.quality_layers[0]

        if image.mode != 'RGB':
            image = image.convert('RGB')

        buffer = io.BytesIO()

        try:
            image.save(
                buffer,
                format='JPEG2000',
                quality_mode=self.quality_mode,
                quality_layers=[quality],
                irreversible=self.irreversible
            )
        except (OSError, ValueError) as e:
            raise RuntimeError(
                f"JPEG2000 compression failed: {e}\n"
                f"Image: {image.size}, mode: {image.mode}\n"
                f"Quality: {quality}, mode: {self.quality_mode}"
            )

        compressed_bytes = buffer.getvalue()

        original_size = image.width * image.height * 3
        compressed_size = len(compressed_bytes)
        ratio = original_size / compressed_size if compressed_size > 0 else 0

        Print("DEBUG",
            f"JPEG2000: {image.width}x{image.height} compressed "
            f"{original_size:,} -> {compressed_size:,} bytes "
            f"(ratio: {ratio:.1f}:1)"
        )

        return compressed_bytes

    @property
    def filter_name(self) -> str:
        return "JPXDecode"

    @property
    def name(self) -> str:
        """Compressor identifier."""
        return "jpeg2000"
