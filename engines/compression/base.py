"""
Image Compressor Protocol for EasyPDF

Defines the contract for encoding images into PDF image XObject streams.
"""

from typing import Protocol, Optional
from PIL import Image


class ImageCompressor(Protocol):
    """
    Protocol for image compression strategies.

    Compressors are responsible for:
    - Encoding RGB PIL images to byte streams a PDF reader can decode
    - Providing the PDF filter name for the stream dictionary
    """

    def compress(self, image: Image.Image, quality: Optional[int] = None) -> bytes:
        """
        Compress image to bytes.

        Args:
            image: RGB PIL Image to compress
            quality: Optional quality override (meaning varies by format)
                    - JPEG2000: compression ratio (10-60+)
                    - JPEG: quality (1-95)
                    - Flate: ignored (lossless)

        Returns:
            Compressed image as bytes

        Raises:
            RuntimeError: If compression fails
        """
        ...

    @property
    def filter_name(self) -> str:
        """
        PDF filter name for this compression format, without the slash.

        Common filters:
            - JPEG2000: 'JPXDecode'
            - JPEG: 'DCTDecode'
            - Flate (zlib): 'FlateDecode'
        """
        ...

    @property
    def name(self) -> str:
        """
        Compressor identifier for logging and debugging.

        Returns:
            Unique name of this compressor (e.g., 'jpeg2000', 'jpeg', 'flate')
        """
        ...
