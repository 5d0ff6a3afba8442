"""
Text processors for EasyPDF

Measurement-driven text wrapping used by the layout engine and renderers.
"""

from .text_wrap import fit_prefix, split_text_to_size

__all__ = ['fit_prefix', 'split_text_to_size']
