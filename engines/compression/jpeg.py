"""
JPEG (DCT) compression for EasyPDF images

Default for photographs: JPEG sources are re-encoded at the configured
quality and embedded with the DCTDecode filter, which every PDF reader
supports.
"""

import io
from typing import Optional
from PIL import Image

from . import register_compressor
from utilities import Print


@register_compressor("jpeg")
class JPEGCompressorFactory:
    """Factory for creating JPEG compressor instances."""

    @staticmethod
    def create(config: dict) -> "JPEGCompressor":
        return JPEGCompressor(config)


class JPEGCompressor:
    """
    Baseline JPEG encoding via Pillow.

    Attributes:
        quality: Pillow JPEG quality (1-95)
        subsampling: Chroma subsampling passed to Pillow (0 = 4:4:4)
    """

    def __init__(self, config: dict):
        self.quality = config.get('quality', 85)
        self.subsampling = config.get('subsampling', 0)

    def compress(self, image: Image.Image, quality: Optional[int] = None) -> bytes:
        if quality is None:
            quality = self.quality

        if image.mode != 'RGB':
            image = image.convert('RGB')

        buffer = io.BytesIO()
        try:
            image.save(buffer, format='JPEG', quality=quality, subsampling=self.subsampling)
        except (OSError, ValueError) as e:
            raise RuntimeError(
                f"JPEG compression failed: {e}\n"
                f"Image: {image.size}, mode: {image.mode}, quality: {quality}"
            )

        compressed_bytes = buffer.getvalue()
        Print("DEBUG", f"JPEG: {image.width}x{image.height} -> {len(compressed_bytes):,} bytes (quality {quality})")
        return compressed_bytes

    @property
    def filter_name(self) -> str:
        return "DCTDecode"

    @property
    def name(self) -> str:
        return "jpeg"
