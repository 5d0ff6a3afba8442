"""
pikepdf-based renderer for EasyPDF

Pages are built the same way a hand-written PDF is: each page owns a list
of content stream operators, and fonts, images and transparency states
are attached as page resources when the document is serialized.

Fonts are limited to the 14 standard PDF fonts, which every reader ships,
so nothing has to be embedded. Text widths come from reportlab's copy of
the Adobe font metrics for those fonts.

Coordinate conversion:
- Callers use millimetres from the top-left corner of the page
- PDF uses points (1/72 inch) from the bottom-left corner, Y increasing upward

PDF Content Stream Operators used:
- q / Q: Save / restore graphics state
- gs: Apply an ExtGState (opacity)
- BT / ET: Begin / end text object
- Tf: Set font and size
- Tm: Set text matrix (position)
- Tj: Show text
- rg / RG: Fill / stroke color (DeviceRGB)
- w: Line width
- m / l / S: Move, line to, stroke
- cm / Do: Transform and paint an image XObject
"""

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pikepdf
from PIL import Image
from reportlab.pdfbase.pdfmetrics import stringWidth

from . import register_renderer
from .base import ImageProperties, ImageSource
from engines.compression import get_compressor
from errors import ImageDecodeError, InvalidOptionError, RenderError
from processors.text_wrap import split_text_to_size
from utilities import Print

# 1 mm in PDF points
MM_TO_PT = 72.0 / 25.4

# The standard 14 fonts - guaranteed in all PDF readers
BASE_14_FONTS = (
    'Helvetica', 'Helvetica-Bold', 'Helvetica-Oblique', 'Helvetica-BoldOblique',
    'Times-Roman', 'Times-Bold', 'Times-Italic', 'Times-BoldItalic',
    'Courier', 'Courier-Bold', 'Courier-Oblique', 'Courier-BoldOblique',
    'Symbol', 'ZapfDingbats',
)

# Short names accepted in place of a full font name
FONT_ALIASES = {
    'text': 'Helvetica',
    'serif': 'Times-Roman',
    'mono': 'Courier',
    'symbol': 'Symbol',
}

# Symbolic fonts carry their own encoding; the rest use WinAnsi
SYMBOLIC_FONTS = ('Symbol', 'ZapfDingbats')

# Image format -> compressor name, used when the config has no mapping
DEFAULT_COMPRESSION = {
    'JPEG': 'jpeg',
    'JPEG2000': 'jpeg2000',
    'PNG': 'flate',
    'default': 'flate',
}

FORMAT_ALIASES = {
    'JPG': 'JPEG',
    'JP2': 'JPEG2000',
    'J2K': 'JPEG2000',
}


@dataclass
class PageBuffer:
    """Content operators and image resources collected for one page."""
    content: List[bytes] = field(default_factory=list)
    images: Dict[str, pikepdf.Object] = field(default_factory=dict)


@register_renderer("pikepdf")
class PikePDFRendererFactory:
    """Factory for creating pikepdf renderer instances."""

    @staticmethod
    def create(config: dict) -> "PikePDFRenderer":
        return PikePDFRenderer(config)


class PikePDFRenderer:
    """
    Renderer that writes PDF content streams directly with pikepdf.

    Attributes:
        font_name: Current font (one of BASE_14_FONTS)
        font_size: Current font size in points
        text_color: Current text color, RGB(A)
        draw_color: Current stroke color, RGB(A)
        line_width: Current stroke width in mm
    """

    def __init__(self, config: dict):
        """
        Initialize the renderer with configuration.

        Args:
            config: Configuration dictionary with optional keys:
                - page_size: [width, height] in mm (default: A4, 210 x 297)
                - font: str - Font name or alias (default: 'Helvetica')
                - font_size: float - Font size in points (default: 16)
                - compression: dict - Image format -> compressor name
                - compressors: dict - Compressor name -> compressor config
        """
        width, height = config.get('page_size', (210.0, 297.0))
        self._page_width = float(width)
        self._page_height = float(height)

        self._compression = dict(DEFAULT_COMPRESSION)
        self._compression.update(config.get('compression', {}))
        self._compressor_configs = config.get('compressors', {})
        self._compressors = {}

        self._pdf = pikepdf.Pdf.new()
        self._pages: List[PageBuffer] = []
        self._current = 0

        # Document-wide resources, shared by every page
        self._font_resources: Dict[str, Tuple[str, pikepdf.Object]] = {}
        self._alpha_resources: Dict[float, Tuple[str, pikepdf.Object]] = {}
        self._image_counter = 0

        self.font_name = 'Helvetica'
        self.font_size = 16.0
        self.text_color: Tuple[float, ...] = (0, 0, 0)
        self.draw_color: Tuple[float, ...] = (0, 0, 0)
        self.line_width = 0.2

        self.set_font(config.get('font', 'Helvetica'))
        self.set_font_size(config.get('font_size', 16))

        self.add_page()

        Print("DEBUG", f"Renderer initialized: page={self._page_width:g}x{self._page_height:g}mm, font={self.font_name}")

    # =========================================================================
    # Drawing state
    # =========================================================================

    def set_font(self, font_name: str) -> None:
        resolved = FONT_ALIASES.get(font_name, font_name)
        if resolved not in BASE_14_FONTS:
            raise InvalidOptionError(
                f"Unknown font: '{font_name}'. "
                f"Available fonts: {', '.join(BASE_14_FONTS)}"
            )
        self.font_name = resolved

    def set_font_size(self, font_size: float) -> None:
        self.font_size = float(font_size)

    def set_text_color(self, color: Sequence[float]) -> None:
        self.text_color = tuple(color)

    def set_draw_color(self, color: Sequence[float]) -> None:
        self.draw_color = tuple(color)

    def set_line_width(self, line_width: float) -> None:
        self.line_width = float(line_width)

    # =========================================================================
    # Pages
    # =========================================================================

    def add_page(self) -> None:
        """Append a blank page and make it the drawing target."""
        size_pt = (self._page_width * MM_TO_PT, self._page_height * MM_TO_PT)
        try:
            self._pdf.add_blank_page(page_size=size_pt)
        except pikepdf.PdfError as e:
            raise RenderError(f"Failed to add page {len(self._pages) + 1}: {e}")
        self._pages.append(PageBuffer())
        self._current = len(self._pages) - 1

    def set_page(self, page_number: int) -> None:
        if not 1 <= page_number <= len(self._pages):
            raise RenderError(
                f"Page {page_number} does not exist (document has {len(self._pages)} pages)"
            )
        self._current = page_number - 1

    @property
    def page_size(self) -> Tuple[float, float]:
        return self._page_width, self._page_height

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def current_page(self) -> int:
        return self._current + 1

    # =========================================================================
    # Primitives
    # =========================================================================

    def text(self, text: str, x: float, y: float) -> None:
        """Draw one line of text with its baseline at (x, y) mm."""
        if not text:
            return

        font_resource, _ = self._font_resource(self.font_name)
        x_pt, y_pt = self._to_pdf_point(x, y)

        commands = [b'q']
        commands.extend(self._alpha_commands(self.text_color))
        commands.extend([
            b'BT',
            f'/{font_resource} {self.font_size:.2f} Tf'.encode('latin-1'),
            f'{self._color_operands(self.text_color)} rg'.encode('latin-1'),
            f'1 0 0 1 {x_pt:.2f} {y_pt:.2f} Tm'.encode('latin-1'),
            b'(' + self._escape_pdf_string(text) + b') Tj',
            b'ET',
            b'Q',
        ])
        self._page.content.extend(commands)

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        x1_pt, y1_pt = self._to_pdf_point(x1, y1)
        x2_pt, y2_pt = self._to_pdf_point(x2, y2)

        commands = [b'q']
        commands.extend(self._alpha_commands(self.draw_color))
        commands.extend([
            f'{self.line_width * MM_TO_PT:.3f} w'.encode('latin-1'),
            f'{self._color_operands(self.draw_color)} RG'.encode('latin-1'),
            f'{x1_pt:.2f} {y1_pt:.2f} m'.encode('latin-1'),
            f'{x2_pt:.2f} {y2_pt:.2f} l'.encode('latin-1'),
            b'S',
            b'Q',
        ])
        self._page.content.extend(commands)

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
        Embed an image scaled into the box whose top-left corner is (x, y) mm.

        Transparent images are composited onto white before encoding.
        """
        img = self._open_image(image)
        compressor = self._compressor(self._compression_key(image_format, img.format))

        rgb = self._convert_to_rgb(img)
        try:
            compressed_bytes = compressor.compress(rgb)
        except RuntimeError as e:
            raise RenderError(str(e))

        self._image_counter += 1
        image_name = f'Im{self._image_counter}'

        image_stream = pikepdf.Stream(self._pdf, compressed_bytes)
        image_stream.stream_dict[pikepdf.Name.Type] = pikepdf.Name.XObject
        image_stream.stream_dict[pikepdf.Name.Subtype] = pikepdf.Name.Image
        image_stream.stream_dict[pikepdf.Name.Width] = rgb.width
        image_stream.stream_dict[pikepdf.Name.Height] = rgb.height
        image_stream.stream_dict[pikepdf.Name.ColorSpace] = pikepdf.Name.DeviceRGB
        image_stream.stream_dict[pikepdf.Name.BitsPerComponent] = 8
        image_stream.stream_dict[pikepdf.Name.Filter] = pikepdf.Name(f'/{compressor.filter_name}')

        self._page.images[image_name] = self._pdf.make_indirect(image_stream)

        # Image space is a unit square; scale it to the box and move its
        # bottom-left corner into place
        x_pt, bottom_pt = self._to_pdf_point(x, y + height)
        self._page.content.extend([
            b'q',
            f'{width * MM_TO_PT:.2f} 0 0 {height * MM_TO_PT:.2f} {x_pt:.2f} {bottom_pt:.2f} cm'.encode('latin-1'),
            f'/{image_name} Do'.encode('latin-1'),
            b'Q',
        ])

        Print("DEBUG", f"Image {image_name}: {rgb.width}x{rgb.height}px via {compressor.name} on page {self.current_page}")

    # =========================================================================
    # Measurement
    # =========================================================================

    def get_text_width(self, text: str) -> float:
        """Width of text in the current font and size, in mm."""
        return stringWidth(text, self.font_name, self.font_size) / MM_TO_PT

    def split_text_to_size(self, text: str, max_width: float) -> List[str]:
        return split_text_to_size(text, max_width, self.get_text_width)

    def get_image_properties(self, image: ImageSource) -> ImageProperties:
        img = self._open_image(image)
        width, height = img.size
        if width <= 0 or height <= 0:
            raise ImageDecodeError(f"Image has no pixels: {width}x{height}")
        return ImageProperties(width=width, height=height, file_type=img.format)

    def check_image_format(self, image_format: Optional[str], file_type: Optional[str] = None) -> None:
        """
        Resolve the compressor an image would be encoded with.

        Args:
            image_format: Requested format, or None to follow file_type
            file_type: Format the image was decoded from (PIL's img.format)

        Raises:
            InvalidOptionError: If image_format is not supported
            RenderError: If the compressor cannot be created
        """
        self._compressor(self._compression_key(image_format, file_type))

    # =========================================================================
    # Output
    # =========================================================================

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        self._finalize()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._pdf.save(str(path))
        except (pikepdf.PdfError, OSError) as e:
            raise RenderError(f"Failed to save PDF to {path}: {e}")
        Print("DEBUG", f"Saved {self.page_count} page(s) to {path}")

    def output(self) -> bytes:
        self._finalize()
        buffer = io.BytesIO()
        try:
            self._pdf.save(buffer)
        except pikepdf.PdfError as e:
            raise RenderError(f"Failed to serialize PDF: {e}")
        return buffer.getvalue()

    def _finalize(self) -> None:
        """Attach collected content streams and resources to the pdf pages."""
        fonts = pikepdf.Dictionary({
            f'/{resource}': obj for resource, obj in self._font_resources.values()
        })
        ext_gstates = pikepdf.Dictionary({
            f'/{resource}': obj for resource, obj in self._alpha_resources.values()
        })

        for page, buffer in zip(self._pdf.pages, self._pages):
            resources = pikepdf.Dictionary(
                Font=fonts,
                ExtGState=ext_gstates,
                XObject=pikepdf.Dictionary({
                    f'/{name}': obj for name, obj in buffer.images.items()
                })
            )
            page.Resources = self._pdf.make_indirect(resources)
            page.Contents = self._pdf.make_indirect(
                pikepdf.Stream(self._pdf, b'\n'.join(buffer.content))
            )

    @property
    def name(self) -> str:
        """Renderer identifier."""
        return "pikepdf"

    # =========================================================================
    # Helpers
    # =========================================================================

    @property
    def _page(self) -> PageBuffer:
        return self._pages[self._current]

    def _to_pdf_point(self, x: float, y: float) -> Tuple[float, float]:
        """Top-left mm -> bottom-left pt."""
        return x * MM_TO_PT, (self._page_height - y) * MM_TO_PT

    def _color_operands(self, color: Sequence[float]) -> str:
        r, g, b = (component / 255.0 for component in color[:3])
        return f'{r:.4f} {g:.4f} {b:.4f}'

    def _font_resource(self, font_name: str) -> Tuple[str, pikepdf.Object]:
        if font_name not in self._font_resources:
            font_dict = pikepdf.Dictionary(
                Type=pikepdf.Name.Font,
                Subtype=pikepdf.Name.Type1,
                BaseFont=pikepdf.Name(f'/{font_name}')
            )
            if font_name not in SYMBOLIC_FONTS:
                font_dict.Encoding = pikepdf.Name.WinAnsiEncoding
            resource = f'F{len(self._font_resources) + 1}'
            self._font_resources[font_name] = (resource, self._pdf.make_indirect(font_dict))
        return self._font_resources[font_name]

    def _alpha_commands(self, color: Sequence[float]) -> List[bytes]:
        """'gs' operator for RGBA colors with alpha below 1, nothing otherwise."""
        if len(color) < 4 or color[3] >= 1:
            return []
        alpha = round(float(color[3]), 3)
        if alpha not in self._alpha_resources:
            gstate = pikepdf.Dictionary(
                Type=pikepdf.Name.ExtGState,
                ca=alpha,
                CA=alpha
            )
            resource = f'GS{len(self._alpha_resources) + 1}'
            self._alpha_resources[alpha] = (resource, self._pdf.make_indirect(gstate))
        resource, _ = self._alpha_resources[alpha]
        return [f'/{resource} gs'.encode('latin-1')]

    def _escape_pdf_string(self, text: str) -> bytes:
        """
        Encode and escape text for a PDF string literal.

        Standard fonts use WinAnsiEncoding (cp1252); characters outside it
        are replaced with '?'.
        """
        encoded = text.encode('cp1252', errors='replace')
        return (
            encoded
            .replace(b'\\', b'\\\\')
            .replace(b'(', b'\\(')
            .replace(b')', b'\\)')
            .replace(b'\r', b'\\r')
            .replace(b'\n', b'\\n')
        )

    def _open_image(self, image: ImageSource) -> Image.Image:
        if isinstance(image, Image.Image):
            return image
        try:
            if isinstance(image, (bytes, bytearray)):
                img = Image.open(io.BytesIO(image))
            else:
                img = Image.open(Path(image))
            img.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            source = 'image bytes' if isinstance(image, (bytes, bytearray)) else str(image)
            raise ImageDecodeError(f"Cannot decode {source}: {e}")
        return img

    def _compression_key(self, image_format: Optional[str], file_type: Optional[str]) -> str:
        if image_format is not None:
            key = FORMAT_ALIASES.get(image_format.upper(), image_format.upper())
            if key not in self._compression:
                known = ', '.join(k for k in self._compression if k != 'default')
                raise InvalidOptionError(
                    f"Unsupported image format: '{image_format}'. Supported formats: {known}"
                )
            return key
        key = FORMAT_ALIASES.get((file_type or '').upper(), (file_type or '').upper())
        return key if key in self._compression else 'default'

    def _compressor(self, key: str):
        compressor_name = self._compression[key]
        if compressor_name not in self._compressors:
            try:
                self._compressors[compressor_name] = get_compressor(
                    compressor_name, self._compressor_configs.get(compressor_name, {})
                )
            except RuntimeError as e:
                raise RenderError(str(e))
        return self._compressors[compressor_name]

    def _convert_to_rgb(self, img: Image.Image) -> Image.Image:
        """Convert image to RGB mode, handling transparency."""
        if img.mode == 'RGB':
            return img
        if img.mode == 'P' and 'transparency' in img.info:
            img = img.convert('RGBA')
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img.convert('RGBA'), mask=img.getchannel('A'))
            return background
        return img.convert('RGB')
