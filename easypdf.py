#!/usr/bin/env python3
"""
EasyPDF: cursor-driven PDF page layout.

A fluent builder that keeps a virtual write cursor across pages, so text
blocks, paragraphs, horizontal rules, images and vertical whitespace can
be appended one after another without computing coordinates.

Architecture:
- EasyPDF owns the layout state (page index, cursor X/Y, last line height)
- Pure layout transitions live in layout.py
- Drawing, measuring and serializing go through a Renderer (engines/render)
- Renderers are created from a registry, like the image compressors they use

Units: millimetres from the top-left corner of the page; font sizes in points.

Usage:
    from easypdf import EasyPDF

    (EasyPDF()
        .add_article("Quarterly report", font_size=24)
        .add_line()
        .add_text("Revenue: ", color=(120, 120, 120))
        .add_text("up 12%", right=4)
        .add_space(6)
        .add_image("chart.png", width=150)
        .save("report.pdf"))

Or from command line:
    python easypdf.py notes.txt notes.pdf --size letter --font-size 12
"""

import json
import re
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence, Union

from engines.render import Renderer, ImageSource, get_renderer
from errors import DocumentClosedError, EasyPDFError, InvalidOptionError
from layout import (
    LayoutState,
    PageGeometry,
    at_left_margin,
    baseline_offset_for,
    break_line,
    break_line_if_inline,
    check_write_y,
    line_height_for,
    new_page,
    resolve_page_size,
    validate_color,
    validate_font_size,
    validate_length,
    validate_text,
)
from processors.text_wrap import fit_prefix
from utilities import Print, set_debug

# add_line() defaults, in mm
DEFAULT_RULE_TOP = 4
DEFAULT_RULE_BOTTOM = 4
DEFAULT_RULE_WIDTH = 0.5

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "config.json"


class EasyPDF:
    """
    Fluent PDF builder with automatic line wrapping and pagination.

    Every add_* method validates its options, computes where the element
    goes, draws it through the renderer and moves the cursor. All of them
    return the instance so calls can be chained.

    Attributes:
        config: Loaded configuration dictionary
        font_size: Default font size in points
        font_name: Font used for all text
        color: Default RGB(A) color for text and rules
        page_padding_x: Left/right page margin in mm
        page_padding_y: Top/bottom page margin in mm
    """

    def __init__(
        self,
        size: Union[str, Sequence[float], None] = None,
        font_size: Optional[float] = None,
        font_name: Optional[str] = None,
        page_padding_x: Optional[float] = None,
        page_padding_y: Optional[float] = None,
        color: Optional[Sequence[float]] = None,
        orientation: Optional[str] = None,
        renderer: Union[str, Renderer] = "pikepdf",
        config_path: Optional[Path] = None
    ):
        """
        Create an empty one-page document.

        Options left as None fall back to the 'document' section of the
        configuration file.

        Args:
            size: Page format name ('a4', 'letter', ...) or (width, height) in mm
            font_size: Default font size in points
            font_name: One of the standard PDF fonts (e.g. 'Helvetica', 'Times-Roman')
            page_padding_x: Left/right margin in mm
            page_padding_y: Top/bottom margin in mm
            color: Default RGB or RGBA color
            orientation: 'portrait' or 'landscape'
            renderer: Registered renderer name, or a Renderer instance
            config_path: Path to config.json. If None, uses default location.

        Raises:
            InvalidOptionError: If an option is malformed
            FileNotFoundError: If the configuration file does not exist
            ValueError: If the renderer name is not registered
        """
        self.config = self._load_config(config_path)
        defaults = self.config.get('document', {})

        def pick(value, key, fallback):
            return defaults.get(key, fallback) if value is None else value

        self.font_size = validate_font_size(pick(font_size, 'font_size', 16))
        self.font_name = pick(font_name, 'font_name', 'Helvetica')
        self.color = validate_color(pick(color, 'color', (10, 10, 10)))
        self.page_padding_x = validate_length("page_padding_x", pick(page_padding_x, 'page_padding_x', 10))
        self.page_padding_y = validate_length("page_padding_y", pick(page_padding_y, 'page_padding_y', 10))

        page_width, page_height = resolve_page_size(
            pick(size, 'size', 'a4'),
            self.config.get('page_formats', {}),
            pick(orientation, 'orientation', 'portrait')
        )

        if isinstance(renderer, str):
            renderer_config = dict(self.config.get('renderers', {}).get(renderer, {}))
            renderer_config.update(
                page_size=[page_width, page_height],
                font=self.font_name,
                font_size=self.font_size
            )
            self._renderer = get_renderer(renderer, renderer_config)
        else:
            self._renderer = renderer

        self._renderer.set_font(self.font_name)
        self._renderer.set_font_size(self.font_size)

        width, height = self._renderer.page_size
        if self.page_padding_x * 2 >= width or self.page_padding_y * 2 >= height:
            raise InvalidOptionError(
                f"Page padding {self.page_padding_x}x{self.page_padding_y}mm leaves no "
                f"content area on a {width:g}x{height:g}mm page"
            )

        self._geometry = PageGeometry(
            page_width=width,
            page_height=height,
            padding_x=self.page_padding_x,
            padding_y=self.page_padding_y
        )
        self._state = LayoutState.initial(self._geometry)
        self._closed = False

        Print("DEBUG",
            f"Document created: {width:g}x{height:g}mm, padding {self.page_padding_x:g}/{self.page_padding_y:g}mm, "
            f"{self.font_name} {self.font_size:g}pt, renderer={self._renderer.name}"
        )

    def _load_config(self, config_path: Optional[Path]) -> dict:
        """Load configuration from JSON file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {config_path}\n"
                f"Create config/config.json or specify path with config_path parameter."
            )

        with open(config_path) as f:
            config = json.load(f)

        Print("DEBUG", f"Loaded configuration v{config.get('version', 'unknown')}")
        return config

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    @property
    def state(self) -> LayoutState:
        return self._state

    @property
    def geometry(self) -> PageGeometry:
        return self._geometry

    @property
    def page_index(self) -> int:
        return self._state.page_index

    @property
    def write_x(self) -> float:
        return self._state.write_x

    @property
    def write_y(self) -> float:
        return self._state.write_y

    @property
    def page_width(self) -> float:
        return self._geometry.page_width

    @property
    def page_height(self) -> float:
        return self._geometry.page_height

    @property
    def client_width(self) -> float:
        """Width of the content area."""
        return self._geometry.client_width

    @property
    def client_height(self) -> float:
        """Height of the content area."""
        return self._geometry.client_height

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Content
    # =========================================================================

    def add_text(
        self,
        text: str,
        font_size: Optional[float] = None,
        color: Optional[Sequence[float]] = None,
        left: float = 0,
        right: float = 0,
        article: bool = False
    ) -> "EasyPDF":
        """
        Write text at the cursor, wrapping and paginating as needed.

        In inline mode the text continues on the current line after whatever
        was written before it; the first line is filled character by
        character, the rest is word-wrapped to the full content width. The
        cursor is left just after the last character so the next call can
        continue on the same line.

        In article mode the text starts on a fresh line and the cursor always
        ends on a fresh line.

        Args:
            text: Text to write; '\\n' forces a line break
            font_size: Font size in points (default: document font size)
            color: RGB or RGBA color (default: document color)
            left: Room reserved on the first line in mm, narrowing it
            right: Space after the text in mm (inline mode)
            article: Paragraph mode

        Returns:
            self, for chaining

        Raises:
            InvalidOptionError: If an option is malformed
            DocumentClosedError: If the document was already saved
        """
        self._ensure_open()
        text = validate_text(text)
        font_size = validate_font_size(self.font_size if font_size is None else font_size)
        color = validate_color(self.color if color is None else color)
        left = validate_length("left", left)
        right = validate_length("right", right)

        renderer = self._renderer
        geometry = self._geometry
        line_height = line_height_for(font_size)
        baseline = baseline_offset_for(font_size)

        renderer.set_font_size(font_size)
        renderer.set_text_color(color)

        state = self._state
        if article:
            state = break_line_if_inline(state, geometry)

        # First line: as many characters as still fit after the cursor
        remaining = geometry.client_width - state.write_x - left - geometry.padding_x
        first_paragraph = text.split('\n', 1)[0]
        consumed = fit_prefix(first_paragraph, remaining, renderer.get_text_width)
        if consumed == 0 and first_paragraph and at_left_margin(state, geometry):
            # Nothing fits on an empty line; take one character so the text advances
            consumed = 1
        # Whitespace at the break stays on this line, like the wrapped lines below
        while consumed < len(first_paragraph) and first_paragraph[consumed].isspace():
            consumed += 1
        first_line = first_paragraph[:consumed]

        state = self._paginate(state, line_height)
        renderer.text(first_line, state.write_x, state.write_y + baseline)
        state = replace(state, write_x=state.write_x + renderer.get_text_width(first_line))

        remainder = text[consumed:]
        if remainder:
            if remainder.startswith('\n'):
                remainder = remainder[1:]
            for line in renderer.split_text_to_size(remainder, geometry.client_width):
                state = break_line(state, geometry, line_height)
                state = self._paginate(state, line_height)
                renderer.text(line, state.write_x, state.write_y + baseline)
                state = replace(state, write_x=geometry.padding_x + renderer.get_text_width(line))

        if article:
            state = break_line(state, geometry, line_height)
        else:
            state = replace(state, write_x=state.write_x + right)
            if state.write_x > geometry.client_width:
                state = break_line(state, geometry, line_height)

        self._state = replace(state, last_line_height=line_height)
        return self

    def add_article(
        self,
        text: str,
        font_size: Optional[float] = None,
        color: Optional[Sequence[float]] = None,
        left: float = 0,
        right: float = 0
    ) -> "EasyPDF":
        """
        Write a paragraph: starts at the left margin, ends on a new line.

        Same options as add_text() without the article flag.
        """
        return self.add_text(text, font_size=font_size, color=color, left=left, right=right, article=True)

    def add_line(
        self,
        top: float = DEFAULT_RULE_TOP,
        bottom: float = DEFAULT_RULE_BOTTOM,
        line_width: float = DEFAULT_RULE_WIDTH,
        color: Optional[Sequence[float]] = None
    ) -> "EasyPDF":
        """
        Draw a horizontal rule across the content width.

        Args:
            top: Space above the rule in mm
            bottom: Space below the rule in mm
            line_width: Stroke thickness in mm
            color: RGB or RGBA color (default: document color)

        Returns:
            self, for chaining
        """
        self._ensure_open()
        top = validate_length("top", top)
        bottom = validate_length("bottom", bottom)
        line_width = validate_length("line_width", line_width)
        color = validate_color(self.color if color is None else color)

        geometry = self._geometry
        state = break_line_if_inline(self._state, geometry)
        state = self._paginate(state, top + line_width)

        self._renderer.set_line_width(line_width)
        self._renderer.set_draw_color(color)
        y = state.write_y + top
        self._renderer.line(geometry.padding_x, y, geometry.right_edge, y)

        self._state = replace(state, write_y=state.write_y + top + line_width + bottom)
        return self

    def add_image(
        self,
        image: ImageSource,
        top: float = 0,
        bottom: float = 0,
        width: Optional[float] = None,
        height: Union[float, str] = 'auto',
        image_format: Optional[str] = None
    ) -> "EasyPDF":
        """
        Place an image on its own line, centred horizontally.

        Args:
            image: File path, encoded image bytes or a PIL image
            top: Space above the image in mm
            bottom: Space below the image in mm
            width: Rendered width in mm (default: content width)
            height: Rendered height in mm, or 'auto' to keep the aspect ratio
            image_format: 'JPEG', 'PNG' or 'JPEG2000' to force an encoding
                (default: chosen from the image's own format)

        Returns:
            self, for chaining

        Raises:
            InvalidOptionError: If an option or the requested format is invalid
            ImageDecodeError: If the image cannot be read
            RenderError: If the encoder for the format is unavailable
        """
        self._ensure_open()
        top = validate_length("top", top)
        bottom = validate_length("bottom", bottom)
        width = self.client_width if width is None else validate_length("width", width, allow_zero=False)
        if image_format is not None and not isinstance(image_format, str):
            raise InvalidOptionError(f"image_format must be a string, got {image_format!r}")

        if isinstance(height, str):
            if height != 'auto':
                raise InvalidOptionError(f"height must be a number or 'auto', got {height!r}")
        else:
            height = validate_length("height", height, allow_zero=False)

        # Decode and pick the encoding before any page can be added
        properties = self._renderer.get_image_properties(image)
        self._renderer.check_image_format(image_format, properties.file_type)
        if height == 'auto':
            height = width * properties.aspect_ratio

        if height > self.client_height:
            Print("WARNING", f"Image height {height:.1f}mm exceeds the content height {self.client_height:.1f}mm")

        geometry = self._geometry
        state = break_line_if_inline(self._state, geometry)
        state = self._paginate(state, top + height)

        x = (geometry.page_width - width) / 2
        self._renderer.add_image(image, x, state.write_y + top, width, height, image_format)

        self._state = replace(
            state,
            write_x=geometry.padding_x,
            write_y=state.write_y + top + height + bottom
        )
        return self

    def add_space(self, height: float) -> "EasyPDF":
        """
        Leave vertical whitespace. The cursor ends at the left margin.

        Args:
            height: Space in mm

        Returns:
            self, for chaining
        """
        self._ensure_open()
        height = validate_length("height", height)

        geometry = self._geometry
        state = break_line_if_inline(self._state, geometry)
        state = self._paginate(state, height)
        self._state = replace(state, write_x=geometry.padding_x, write_y=state.write_y + height)
        return self

    def add_page(self) -> "EasyPDF":
        """Start a new page; the cursor moves to its top-left content corner."""
        self._ensure_open()
        self._renderer.add_page()
        state = new_page(self._state, self._geometry)
        self._renderer.set_page(state.page_index)
        self._state = state
        Print("DEBUG", f"Page {state.page_index} started (explicit break)")
        return self

    # =========================================================================
    # Output
    # =========================================================================

    def save(self, filename: Union[str, Path]) -> "EasyPDF":
        """
        Write the PDF file. The document cannot be modified afterwards.

        Args:
            filename: Output path

        Returns:
            self

        Raises:
            RenderError: If the file cannot be written
        """
        self._ensure_open()
        self._renderer.save(filename)
        self._closed = True
        Print("DEBUG", f"Saved {self.page_index} page(s) to {filename}")
        return self

    def output(self) -> bytes:
        """Return the PDF as bytes without closing the document."""
        return self._renderer.output()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise DocumentClosedError("Document has already been saved")

    def _paginate(self, state: LayoutState, height: float) -> LayoutState:
        """Apply the pagination guard and mirror a page break in the renderer."""
        new_state, paginated = check_write_y(state, self._geometry, height)
        if paginated:
            self._renderer.add_page()
            self._renderer.set_page(new_state.page_index)
            Print("DEBUG",
                f"Page {new_state.page_index} started: {height:.2f}mm did not fit at y={state.write_y:.2f}mm"
            )
        return new_state


# =============================================================================
# Plain-text markup
# =============================================================================

_IMAGE_PATTERN = re.compile(r'^!\[[^\]]*\]\(([^)]+)\)$')

# Heading size relative to the body font, and paragraph gap relative to the line height
HEADING_SCALE = 1.5
PARAGRAPH_GAP_RATIO = 0.5


def render_markup(pdf: EasyPDF, source: str, base_dir: Optional[Path] = None) -> EasyPDF:
    """
    Lay out a small plain-text markup.

    - '# Title' lines become headings
    - '---' draws a horizontal rule
    - '![alt](path)' inserts an image at content width (path relative to base_dir)
    - Consecutive other lines are joined into one paragraph
    - Blank lines separate paragraphs

    Returns:
        The same EasyPDF instance
    """
    base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
    paragraph = []
    gap = line_height_for(pdf.font_size) * PARAGRAPH_GAP_RATIO

    def flush():
        if paragraph:
            pdf.add_article(' '.join(paragraph))
            paragraph.clear()
            return True
        return False

    for raw_line in source.splitlines():
        line = raw_line.strip()

        if not line:
            if flush():
                pdf.add_space(gap)
            continue

        heading = re.match(r'^#{1,6}\s+(.*)$', line)
        image = _IMAGE_PATTERN.match(line)

        if heading:
            flush()
            pdf.add_article(heading.group(1), font_size=pdf.font_size * HEADING_SCALE)
        elif line == '---':
            flush()
            pdf.add_line()
        elif image:
            flush()
            pdf.add_image(base_dir / image.group(1).strip(), top=gap, bottom=gap)
        else:
            paragraph.append(line)

    flush()
    return pdf


def main():
    """Command-line entry point: render a plain-text file to PDF."""
    import argparse

    parser = argparse.ArgumentParser(
        description='EasyPDF: lay out a plain-text file as a PDF',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Markup:
  # Heading        larger paragraph
  ---              horizontal rule
  ![alt](img.png)  image at content width
  blank line       paragraph break

Examples:
  python easypdf.py notes.txt notes.pdf
  python easypdf.py notes.txt notes.pdf --size letter --font-size 12
  python easypdf.py notes.txt notes.pdf --orientation landscape --font Times-Roman
        """
    )

    parser.add_argument('input', type=Path, help='Input text file')
    parser.add_argument('output', type=Path, help='Output PDF file')
    parser.add_argument('--size', default=None, help='Page format (default: from config)')
    parser.add_argument('--orientation', choices=['portrait', 'landscape'], default=None)
    parser.add_argument('--font-size', type=float, default=None, help='Body font size in points')
    parser.add_argument('--font', default=None, help='Standard PDF font name')
    parser.add_argument('--padding-x', type=float, default=None, help='Left/right margin in mm')
    parser.add_argument('--padding-y', type=float, default=None, help='Top/bottom margin in mm')
    parser.add_argument('--config', type=Path, default=None, help='Path to config.json')
    parser.add_argument('--verbose', action='store_true', help='Show debug output')

    args = parser.parse_args()
    set_debug(args.verbose)

    try:
        if not args.input.exists():
            raise FileNotFoundError(f"Input file not found: {args.input}")

        Print("STARTING", f"Laying out {args.input.name}")
        pdf = EasyPDF(
            size=args.size,
            font_size=args.font_size,
            font_name=args.font,
            page_padding_x=args.padding_x,
            page_padding_y=args.padding_y,
            orientation=args.orientation,
            config_path=args.config
        )

        source = args.input.read_text(encoding='utf-8')
        render_markup(pdf, source, base_dir=args.input.parent)
        pdf.save(args.output)

        Print("COMPLETED", f"Saved: {args.output} ({pdf.page_index} page{'s' if pdf.page_index != 1 else ''})")
        return 0

    except FileNotFoundError as e:
        Print("FAILURE", str(e))
        return 1
    except EasyPDFError as e:
        Print("FAILURE", str(e))
        return 2
    except KeyboardInterrupt:
        Print("WARNING", "Interrupted by user")
        return 130
    except Exception as e:
        Print("FAILURE", f"Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    import sys
    sys.exit(main())
