"""
Renderer Protocol for EasyPDF

Defines the contract the layout engine draws through.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, List, Optional, Sequence, Tuple, Union

from PIL import Image

# Anything add_image() accepts: a file path, encoded image bytes, or a PIL image
ImageSource = Union[str, Path, bytes, Image.Image]


@dataclass(frozen=True)
class ImageProperties:
    """Intrinsic image dimensions in pixels, plus the detected file type."""
    width: int
    height: int
    file_type: Optional[str] = None

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width


class Renderer(Protocol):
    """
    Protocol for PDF renderers.

    Renderers are responsible for:
    - Keeping the drawing state (font, size, colors, stroke width)
    - Drawing text, lines and images at absolute coordinates
    - Appending and selecting pages
    - Measuring text and images
    - Serializing the finished document

    All coordinates and lengths are millimetres measured from the
    top-left corner of the page. Font sizes are points. Colors are
    RGB(A) sequences: 0-255 per channel, optional alpha 0-1.

    Pages are numbered from 1.
    """

    def set_font(self, font_name: str) -> None:
        """
        Select the font for subsequent text calls.

        Raises:
            InvalidOptionError: If the font is not available
        """
        ...

    def set_font_size(self, font_size: float) -> None:
        ...

    def set_text_color(self, color: Sequence[float]) -> None:
        ...

    def set_draw_color(self, color: Sequence[float]) -> None:
        ...

    def set_line_width(self, line_width: float) -> None:
        ...

    def text(self, text: str, x: float, y: float) -> None:
        """
        Draw a single line of text with its baseline at (x, y).

        Raises:
            RenderError: If the text cannot be drawn
        """
        ...

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        ...

    def add_image(
        self,
        image: ImageSource,
        x: float,
        y: float,
        width: float,
        height: float,
        image_format: Optional[str] = None
    ) -> None:
        """
        Draw an image scaled into the box with top-left corner (x, y).

        Raises:
            ImageDecodeError: If the image cannot be decoded
            RenderError: If the image cannot be embedded
        """
        ...

    def add_page(self) -> None:
        """Append a blank page at the end of the document."""
        ...

    def set_page(self, page_number: int) -> None:
        """
        Make an existing page the target of drawing calls.

        Raises:
            RenderError: If the page does not exist
        """
        ...

    def get_text_width(self, text: str) -> float:
        """Width of text in the current font and size, in mm."""
        ...

    def split_text_to_size(self, text: str, max_width: float) -> List[str]:
        """Word-wrap text into lines no wider than max_width (mm)."""
        ...

    def get_image_properties(self, image: ImageSource) -> ImageProperties:
        """
        Raises:
            ImageDecodeError: If the image cannot be decoded
        """
        ...

    def check_image_format(self, image_format: Optional[str], file_type: Optional[str] = None) -> None:
        """
        Check that an image can be encoded, without drawing anything.

        Args:
            image_format: Requested encoding ('JPEG', 'PNG', 'JPEG2000'), or None
            file_type: Format the image was decoded from

        Raises:
            InvalidOptionError: If image_format is not supported
            RenderError: If the encoder is unavailable
        """
        ...

    def save(self, path: Union[str, Path]) -> None:
        """
        Write the document to disk.

        Raises:
            RenderError: If serialization fails
        """
        ...

    def output(self) -> bytes:
        """Serialized document as bytes."""
        ...

    @property
    def page_size(self) -> Tuple[float, float]:
        """(width, height) of a page in mm."""
        ...

    @property
    def page_count(self) -> int:
        ...

    @property
    def name(self) -> str:
        """
        Renderer identifier for logging and debugging.

        Returns:
            Unique name of this renderer (e.g., 'pikepdf')
        """
        ...
