"""
Renderer registry for EasyPDF

EasyPDF never draws by itself: it asks a renderer to set fonts and colors,
draw text, rules and images at millimetre coordinates, add pages and write
the file. Renderers register a factory under a name, and EasyPDF looks the
factory up from its `renderer` option ("pikepdf" by default).

The factory receives the renderer section of config.json, merged with the
document's page size, font and font size.
"""

from typing import Dict, Callable
from .base import Renderer, ImageProperties, ImageSource

# Global registry of renderer factories
RENDERER_REGISTRY: Dict[str, Callable[[dict], Renderer]] = {}


def register_renderer(name: str):
    """
    Decorator to register renderer factories.

    Args:
        name: Name accepted by EasyPDF(renderer=...)

    Returns:
        Decorator function that registers the factory class
    """
    def decorator(factory_class):
        RENDERER_REGISTRY[name] = factory_class.create
        return factory_class
    return decorator


def get_renderer(name: str, config: dict) -> Renderer:
    """
    Get a renderer instance by name.

    Args:
        name: Renderer identifier (must be registered)
        config: Page size, font, font size and compression settings

    Returns:
        Renderer with one blank page ready for drawing

    Raises:
        ValueError: If renderer name is not registered
    """
    if name not in RENDERER_REGISTRY:
        available = ', '.join(RENDERER_REGISTRY.keys()) if RENDERER_REGISTRY else 'none'
        raise ValueError(
            f"Unknown renderer: '{name}'. "
            f"Available renderers: {available}"
        )
    return RENDERER_REGISTRY[name](config)


# Import bundled renderers to trigger registration
from . import pikepdf_renderer  # noqa: E402,F401
