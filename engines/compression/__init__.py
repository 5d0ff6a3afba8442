"""
Image compressor registry for EasyPDF

An image placed with add_image is embedded as a PDF image XObject whose
stream is encoded by one of these compressors. The renderer maps the
image's format to a compressor name through the "compression" table of
its config ('JPEG' -> 'jpeg', 'PNG' -> 'flate', ...), then builds the
compressor from the matching "compressors" entry.

Each compressor reports the PDF filter name (FlateDecode, DCTDecode,
JPXDecode) a reader needs to decode its output.
"""

from typing import Dict, Callable
from .base import ImageCompressor

# Global registry of image compressor factories
COMPRESSOR_REGISTRY: Dict[str, Callable[[dict], ImageCompressor]] = {}


def register_compressor(name: str):
    """
    Decorator to register image compressor factories.

    Args:
        name: Name used as a value in the renderer's "compression" table

    Returns:
        Decorator function that registers the factory class
    """
    def decorator(factory_class):
        COMPRESSOR_REGISTRY[name] = factory_class.create
        return factory_class
    return decorator


def get_compressor(name: str, config: dict) -> ImageCompressor:
    """
    Get an image compressor instance by name.

    Args:
        name: Compressor identifier (must be registered)
        config: Matching entry of the "compressors" config (quality, level, ...)

    Returns:
        Compressor producing a stream for its PDF filter

    Raises:
        ValueError: If compressor name is not registered
    """
    if name not in COMPRESSOR_REGISTRY:
        available = ', '.join(COMPRESSOR_REGISTRY.keys()) if COMPRESSOR_REGISTRY else 'none'
        raise ValueError(
            f"Unknown compressor: '{name}'. "
            f"Available compressors: {available}"
        )
    return COMPRESSOR_REGISTRY[name](config)


# Import bundled compressors to trigger registration
from . import flate, jpeg, jpeg2000  # noqa: E402,F401
