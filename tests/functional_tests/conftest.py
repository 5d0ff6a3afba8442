"""
Shared fixtures for EasyPDF functional tests.

FakeRenderer records every call instead of drawing, and measures text as
a monospace font: each character is font_size / 8 mm wide, so at the
default 16pt a character is exactly 2mm and an A4 content line with 10mm
margins holds 95 characters.
"""

import sys
from pathlib import Path
from typing import List, Tuple

import pytest

# Add repo root to path for imports
repo_root = Path(__file__).resolve().parent.parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from engines.render.base import ImageProperties
from errors import ImageDecodeError, InvalidOptionError
from processors.text_wrap import split_text_to_size


class FakeRenderer:
    """Recording renderer with monospace metrics."""

    def __init__(self, page_size: Tuple[float, float] = (210.0, 297.0)):
        self._page_size = page_size
        self.calls: List[tuple] = []
        self.pages = 1
        self.current = 1
        self.font_size = 16.0
        self.saved_to = None

    # drawing state
    def set_font(self, font_name):
        self.calls.append(('set_font', font_name))

    def set_font_size(self, font_size):
        self.font_size = float(font_size)
        self.calls.append(('set_font_size', font_size))

    def set_text_color(self, color):
        self.calls.append(('set_text_color', tuple(color)))

    def set_draw_color(self, color):
        self.calls.append(('set_draw_color', tuple(color)))

    def set_line_width(self, line_width):
        self.calls.append(('set_line_width', line_width))

    # primitives
    def text(self, text, x, y):
        self.calls.append(('text', text, x, y, self.current))

    def line(self, x1, y1, x2, y2):
        self.calls.append(('line', x1, y1, x2, y2, self.current))

    def add_image(self, image, x, y, width, height, image_format=None):
        self.calls.append(('image', x, y, width, height, self.current))

    # pages
    def add_page(self):
        self.pages += 1
        self.current = self.pages
        self.calls.append(('add_page',))

    def set_page(self, page_number):
        self.current = page_number
        self.calls.append(('set_page', page_number))

    # measurement
    def get_text_width(self, text):
        return len(text) * self.font_size / 8

    def split_text_to_size(self, text, max_width):
        return split_text_to_size(text, max_width, self.get_text_width)

    def get_image_properties(self, image):
        # Tests pass (width_px, height_px) tuples as images; anything else is undecodable
        if not isinstance(image, tuple):
            raise ImageDecodeError(f"Cannot decode {image!r}")
        width, height = image
        return ImageProperties(width=width, height=height, file_type='PNG')

    def check_image_format(self, image_format, file_type=None):
        if image_format is not None and image_format.upper() not in ('JPEG', 'PNG', 'JPEG2000'):
            raise InvalidOptionError(f"Unsupported image format: '{image_format}'")

    # output
    def save(self, path):
        self.saved_to = path
        self.calls.append(('save', path))

    def output(self):
        return b'%PDF-fake'

    @property
    def page_size(self):
        return self._page_size

    @property
    def page_count(self):
        return self.pages

    @property
    def name(self):
        return "fake"

    # helpers for assertions
    def of_kind(self, kind):
        return [call for call in self.calls if call[0] == kind]

    def texts(self):
        return [call[1] for call in self.of_kind('text')]


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def doc(fake_renderer):
    """A4 document, 10mm margins, 16pt, drawing into a FakeRenderer."""
    from easypdf import EasyPDF
    return EasyPDF(renderer=fake_renderer)
