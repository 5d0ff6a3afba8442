"""
Error types for EasyPDF

Options are validated before the cursor or the renderer is touched, so an
InvalidOptionError leaves the document exactly as it was. Errors raised
by the renderer while drawing propagate to the caller as RenderError.
"""


class EasyPDFError(Exception):
    """Base class for all EasyPDF errors."""


class InvalidOptionError(EasyPDFError, ValueError):
    """A style or layout option is malformed (bad color, negative size, unknown font...)."""


class ImageDecodeError(EasyPDFError, ValueError):
    """Image data cannot be opened or measured."""


class RenderError(EasyPDFError, RuntimeError):
    """The renderer rejected a draw, page or save call."""


class DocumentClosedError(RenderError):
    """Content was added to a document that has already been saved."""
