"""
Width-aware text wrapping for EasyPDF.

Two operations, both driven by a measuring function that returns the
rendered width of a string (in the same unit as the width limit):

- fit_prefix(): the longest prefix of a string that fits a width. Used
  for the "first line" of a text block, which may continue inline after
  content already written on the current line. Character based, not
  word based.

- split_text_to_size(): word-wrap a string into lines no wider than a
  width. Hard newlines always start a new line. Words wider than a whole
  line are cut between characters.

Nothing is dropped except the newline characters themselves: joining the
returned lines gives back the input with its newlines removed. Spaces at
a wrap point stay at the end of the line they follow and are not counted
against the width limit.

Prefix widths only grow as characters are added (no kerning in the
standard PDF font metrics), so fit_prefix() can bisect instead of probing
one character at a time.
"""

import re
from typing import Callable, List

Measure = Callable[[str], float]

# A word with the whitespace that follows it, or a run of leading whitespace
_CHUNK_PATTERN = re.compile(r'\S+\s*|\s+')


def fit_prefix(text: str, max_width: float, measure: Measure) -> int:
    """
    Length of the longest prefix of text whose measured width is <= max_width.

    Returns 0 when not even the first character fits (including when
    max_width is negative).
    """
    if max_width < 0 or not text:
        return 0
    if measure(text) <= max_width:
        return len(text)

    # Invariant: prefix of length lo fits, prefix of length hi does not
    lo, hi = 0, len(text)
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if measure(text[:mid]) <= max_width:
            lo = mid
        else:
            hi = mid
    return lo


def _wrap_paragraph(paragraph: str, max_width: float, measure: Measure) -> List[str]:
    lines: List[str] = []
    current = ''

    for chunk in _CHUNK_PATTERN.findall(paragraph):
        candidate = current + chunk
        if measure(candidate.rstrip()) <= max_width:
            current = candidate
            continue

        if current:
            lines.append(current)
            current = ''

        # Word longer than a full line: cut it, at least one character per line
        while chunk.rstrip() and measure(chunk.rstrip()) > max_width:
            cut = max(1, fit_prefix(chunk, max_width, measure))
            lines.append(chunk[:cut])
            chunk = chunk[cut:]
        current = chunk

    if current or not lines:
        lines.append(current)
    return lines


def split_text_to_size(text: str, max_width: float, measure: Measure) -> List[str]:
    """
    Wrap text into lines that fit max_width.

    Always returns at least one line; an empty string gives [''].
    """
    lines: List[str] = []
    for paragraph in text.split('\n'):
        lines.extend(_wrap_paragraph(paragraph, max_width, measure))
    return lines
