"""
Layout state for EasyPDF

The whole layout engine state is the tuple (page_index, write_x, write_y,
last_line_height). Every public EasyPDF operation is a transition over
that tuple plus a side effect on the renderer (draw calls, new pages).

The transitions here are pure: they take a LayoutState and a PageGeometry
and return a new LayoutState, so they can be tested without any renderer.

Coordinates are millimetres measured from the top-left corner of the page.
Font sizes are points.
"""

import math
from dataclasses import dataclass, replace
from numbers import Real
from typing import Optional, Sequence, Tuple

from errors import InvalidOptionError

# Line height as a fraction of the font size (empirical, not font-metric derived)
LINE_HEIGHT_RATIO = 0.55

# Distance from the top of a line to the text baseline, as a fraction of the font size
BASELINE_RATIO = 0.4

# Tolerance when deciding whether the cursor sits on the left margin
_EPSILON = 1e-9


@dataclass(frozen=True)
class PageGeometry:
    """Page dimensions and the content-area inset."""
    page_width: float
    page_height: float
    padding_x: float
    padding_y: float

    @property
    def client_width(self) -> float:
        return self.page_width - self.padding_x * 2

    @property
    def client_height(self) -> float:
        return self.page_height - self.padding_y * 2

    @property
    def right_edge(self) -> float:
        return self.page_width - self.padding_x

    @property
    def bottom_edge(self) -> float:
        return self.page_height - self.padding_y


@dataclass(frozen=True)
class LayoutState:
    """Cursor position and line bookkeeping."""
    page_index: int
    write_x: float
    write_y: float
    last_line_height: float = 0.0

    @classmethod
    def initial(cls, geometry: PageGeometry) -> "LayoutState":
        """Page 1, cursor at the top-left corner of the content area."""
        return cls(
            page_index=1,
            write_x=geometry.padding_x,
            write_y=geometry.padding_y,
            last_line_height=0.0
        )


def line_height_for(font_size: float) -> float:
    return font_size * LINE_HEIGHT_RATIO


def baseline_offset_for(font_size: float) -> float:
    return font_size * BASELINE_RATIO


def at_left_margin(state: LayoutState, geometry: PageGeometry) -> bool:
    return abs(state.write_x - geometry.padding_x) <= _EPSILON


def needs_new_page(state: LayoutState, geometry: PageGeometry, height: float) -> bool:
    return state.write_y + height > geometry.bottom_edge


def check_write_y(
    state: LayoutState,
    geometry: PageGeometry,
    height: float
) -> Tuple[LayoutState, bool]:
    """
    Pagination guard.

    If an element of the given height does not fit below the cursor,
    move to the top of the next page. Only write_y and page_index change;
    write_x is left alone.

    Returns:
        (new state, whether a page was added)
    """
    if not needs_new_page(state, geometry, height):
        return state, False
    return replace(state, page_index=state.page_index + 1, write_y=geometry.padding_y), True


def break_line(state: LayoutState, geometry: PageGeometry, advance: float) -> LayoutState:
    """Return to the left margin and move down by advance."""
    return replace(state, write_x=geometry.padding_x, write_y=state.write_y + advance)


def break_line_if_inline(state: LayoutState, geometry: PageGeometry) -> LayoutState:
    """
    Blocks (rules, images, spaces, paragraphs) always start at the margin.

    When the cursor is mid-line, finish that line using the height of the
    last written line.
    """
    if at_left_margin(state, geometry):
        return state
    return break_line(state, geometry, state.last_line_height)


def new_page(state: LayoutState, geometry: PageGeometry) -> LayoutState:
    """Explicit page break: next page, cursor at the content origin."""
    return LayoutState(
        page_index=state.page_index + 1,
        write_x=geometry.padding_x,
        write_y=geometry.padding_y,
        last_line_height=0.0
    )


# =============================================================================
# Option validation
# =============================================================================

def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_length(name: str, value, allow_zero: bool = True) -> float:
    """Check a millimetre length (margin, width, height) and return it as float."""
    if not _is_number(value):
        raise InvalidOptionError(f"{name} must be a finite number, got {value!r}")
    if value < 0 or (value == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise InvalidOptionError(f"{name} must be {bound}, got {value!r}")
    return float(value)


def validate_font_size(value) -> float:
    return validate_length("font_size", value, allow_zero=False)


def validate_color(value: Sequence) -> Tuple[float, ...]:
    """
    Check an RGB or RGBA color.

    RGB components are 0-255. The optional alpha component is an opacity
    between 0 and 1.
    """
    if isinstance(value, (str, bytes)) or not hasattr(value, '__len__'):
        raise InvalidOptionError(f"color must be an RGB or RGBA sequence, got {value!r}")
    if len(value) not in (3, 4):
        raise InvalidOptionError(f"color must have 3 (RGB) or 4 (RGBA) components, got {len(value)}")

    components = tuple(value)
    for component in components[:3]:
        if not _is_number(component) or not 0 <= component <= 255:
            raise InvalidOptionError(f"color components must be between 0 and 255, got {value!r}")
    if len(components) == 4:
        alpha = components[3]
        if not _is_number(alpha) or not 0 <= alpha <= 1:
            raise InvalidOptionError(f"color alpha must be between 0 and 1, got {alpha!r}")
    return components


def validate_text(value) -> str:
    if not isinstance(value, str):
        raise InvalidOptionError(f"text must be a string, got {type(value).__name__}")
    return value


def resolve_page_size(
    size,
    page_formats: dict,
    orientation: Optional[str] = 'portrait'
) -> Tuple[float, float]:
    """
    Turn a format name ('a4', 'letter', ...) or a (width, height) pair into
    page dimensions in mm, honouring the orientation.
    """
    if isinstance(size, str):
        key = size.lower()
        if key not in page_formats:
            available = ', '.join(sorted(page_formats)) if page_formats else 'none'
            raise InvalidOptionError(
                f"Unknown page format: '{size}'. Available formats: {available}"
            )
        width, height = page_formats[key]
    else:
        try:
            width, height = size
        except (TypeError, ValueError):
            raise InvalidOptionError(f"size must be a format name or a (width, height) pair, got {size!r}")

    width = validate_length("page width", width, allow_zero=False)
    height = validate_length("page height", height, allow_zero=False)

    orientation = (orientation or 'portrait').lower()
    if orientation not in ('portrait', 'landscape'):
        raise InvalidOptionError(f"orientation must be 'portrait' or 'landscape', got {orientation!r}")

    short_side, long_side = sorted((width, height))
    if orientation == 'landscape':
        return long_side, short_side
    return short_side, long_side
