"""
Lossless Flate (zlib) compression for EasyPDF images

Used for PNG, GIF and other non-JPEG sources so line art, screenshots and
diagrams keep sharp edges. The stream holds raw 8-bit RGB samples.
"""

import zlib
from typing import Optional
from PIL import Image

from . import register_compressor
from utilities import Print


@register_compressor("flate")
class FlateCompressorFactory:
    """Factory for creating Flate compressor instances."""

    @staticmethod
    def create(config: dict) -> "FlateCompressor":
        return FlateCompressor(config)


class FlateCompressor:
    """
    Attributes:
        level: zlib compression level (0-9)
    """

    def __init__(self, config: dict):
        self.level = config.get('level', 6)

    def compress(self, image: Image.Image, quality: Optional[int] = None) -> bytes:
        # quality is meaningless for a lossless encoder
        if image.mode != 'RGB':
            image = image.convert('RGB')

        raw = image.tobytes()
        compressed_bytes = zlib.compress(raw, self.level)
        Print("DEBUG", f"Flate: {image.width}x{image.height} {len(raw):,} -> {len(compressed_bytes):,} bytes")
        return compressed_bytes

    @property
    def filter_name(self) -> str:
        return "FlateDecode"

    @property
    def name(self) -> str:
        return "flate"
